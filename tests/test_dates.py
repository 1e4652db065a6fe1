from datetime import date, datetime, timezone

import pytest

from budgettracker.domain.dates import (
    add_months,
    expand_two_digit_year,
    month_from_name,
    parse_statement_date,
    resolve_day_month,
)


def _ymd(value: datetime | None) -> tuple[int, int, int]:
    assert value is not None
    return value.year, value.month, value.day


def test_day_first_by_default() -> None:
    assert _ymd(parse_statement_date("15/01/2024")) == (2024, 1, 15)
    # Both components could be a month: read as DD/MM.
    assert _ymd(parse_statement_date("03/04/2024")) == (2024, 4, 3)


def test_second_component_over_twelve_forces_month_first() -> None:
    assert _ymd(parse_statement_date("01/15/2024")) == (2024, 1, 15)


def test_month_first_preference() -> None:
    assert _ymd(parse_statement_date("03/04/2024", day_first=False)) == (2024, 3, 4)
    # Unambiguous dates ignore the preference.
    assert _ymd(parse_statement_date("15/01/2024", day_first=False)) == (2024, 1, 15)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-15", (2024, 1, 15)),
        ("2024/1/5", (2024, 1, 5)),
        ("15.01.2024", (2024, 1, 15)),
        ("15.01.24", (2024, 1, 15)),
        ("01-15-2024", (2024, 1, 15)),
        ("1-15-24", (2024, 1, 15)),
        ("15 January 2024", (2024, 1, 15)),
        ("5 Sept 2023", (2023, 9, 5)),
        ("Jan 15 2024", (2024, 1, 15)),
        ("March 3, 2024", (2024, 3, 3)),
        ('"16/01/2024"', (2024, 1, 16)),
        ("2024-01-15T10:30:00Z", (2024, 1, 15)),
    ],
)
def test_supported_formats(raw: str, expected: tuple[int, int, int]) -> None:
    assert _ymd(parse_statement_date(raw)) == expected


def test_two_digit_years() -> None:
    assert parse_statement_date("01/15/24").year == 2024
    assert parse_statement_date("01/15/99").year == 1999
    assert expand_two_digit_year(0) == 2000
    assert expand_two_digit_year(49) == 2049
    assert expand_two_digit_year(50) == 1950


def test_result_is_utc_midnight() -> None:
    parsed = parse_statement_date("15/01/2024")
    assert parsed == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert parsed.isoformat().startswith("2024-01-15T00:00:00")


@pytest.mark.parametrize(
    "raw",
    ["", None, "   ", "invalid-date", "31/02/2024", "13/13/2024", "00/05/2024", "15 Foo 2024", "2024-13-01"],
)
def test_unparseable_dates(raw: str | None) -> None:
    assert parse_statement_date(raw) is None


def test_resolve_day_month() -> None:
    assert resolve_day_month(13, 5) == (13, 5)
    assert resolve_day_month(5, 13) == (13, 5)
    assert resolve_day_month(5, 6) == (5, 6)
    assert resolve_day_month(5, 6, day_first=False) == (6, 5)
    assert resolve_day_month(13, 14) is None
    assert resolve_day_month(0, 5) is None


def test_month_from_name() -> None:
    assert month_from_name("December") == 12
    assert month_from_name("dec") == 12
    assert month_from_name("ma") is None
    assert month_from_name("Smarch") is None


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
    assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)
