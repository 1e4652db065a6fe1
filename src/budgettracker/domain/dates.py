"""Date handling for bank statements and recurring schedules.

Statement dates arrive in whatever format the bank exported: ISO, European
``DD/MM/YYYY`` and ``DD.MM.YY``, US ``MM/DD/YYYY``, or written months such as
``15 January 2024``. :func:`parse_statement_date` normalises all of them to a
timezone-aware ``datetime`` at UTC midnight, resolving ambiguous numeric dates
day-first unless told otherwise.
"""

import calendar
import re
from datetime import date, datetime, timezone

_QUOTE_CHARS = "\"'“”„‘’"

_ISO_DATE = re.compile(r"^(\d{4})[-/.]\s*(\d{1,2})[-/.]\s*(\d{1,2})$")
_NUMERIC_LONG_YEAR = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")
_NUMERIC_SHORT_YEAR = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{2})$")
_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})\.?\s+([A-Za-z]+)\.?,?\s+(\d{4})$")
_MONTH_NAME_DAY = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")

_MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)


def expand_two_digit_year(year: int) -> int:
    """00-49 -> 2000-2049, 50-99 -> 1950-1999."""
    return 2000 + year if year < 50 else 1900 + year


def month_from_name(name: str) -> int | None:
    """Full or abbreviated English month name (at least three letters)."""
    lowered = name.strip().lower()
    if len(lowered) < 3:
        return None
    for index, full_name in enumerate(_MONTH_NAMES, start=1):
        if full_name.startswith(lowered):
            return index
    return None


def resolve_day_month(first: int, second: int, *, day_first: bool = True) -> tuple[int, int] | None:
    """Decide which of two numeric date components is the day.

    A component above 12 can only be a day, which settles the order. When
    both could be months the ``day_first`` preference decides. Returns
    ``(day, month)`` or ``None`` when neither reading can be valid.
    """
    if first < 1 or second < 1:
        return None
    if first > 12 and second > 12:
        return None
    if first > 12:
        return first, second
    if second > 12:
        return second, first
    return (first, second) if day_first else (second, first)


def utc_midnight(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _build(year: int, month: int, day: int) -> datetime | None:
    try:
        return utc_midnight(date(year, month, day))
    except ValueError:
        return None


def _parse_numeric(match: re.Match, year: int, day_first: bool) -> datetime | None:
    resolved = resolve_day_month(int(match.group(1)), int(match.group(2)), day_first=day_first)
    if resolved is None:
        return None
    day, month = resolved
    return _build(year, month, day)


def parse_statement_date(value: str | None, *, day_first: bool = True) -> datetime | None:
    if not value:
        return None
    cleaned = value.strip().strip(_QUOTE_CHARS).strip()
    if not cleaned:
        return None

    match = _ISO_DATE.match(cleaned)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build(year, month, day)

    match = _NUMERIC_LONG_YEAR.match(cleaned)
    if match:
        return _parse_numeric(match, int(match.group(3)), day_first)

    match = _NUMERIC_SHORT_YEAR.match(cleaned)
    if match:
        return _parse_numeric(match, expand_two_digit_year(int(match.group(3))), day_first)

    match = _DAY_MONTH_NAME.match(cleaned)
    if match:
        month = month_from_name(match.group(2))
        if month is None:
            return None
        return _build(int(match.group(3)), month, int(match.group(1)))

    match = _MONTH_NAME_DAY.match(cleaned)
    if match:
        month = month_from_name(match.group(1))
        if month is None:
            return None
        return _build(int(match.group(3)), month, int(match.group(2)))

    # Exports that carry a timestamp, e.g. "2024-01-15T10:30:00Z".
    try:
        parsed = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        return None
    return utc_midnight(parsed.date())


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamped to the last day of the target month.

    >>> add_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))
