"""Bank statement parsing.

Two entry points turn raw statement text into :class:`TransactionRecord`
lists: :func:`parse_csv` for CSV exports with a header row, and
:func:`parse_pdf` for plain text already extracted from a PDF statement.

Both are best-effort batch operations. A row with an unreadable date, a zero
or non-numeric amount, or too few fields is dropped and parsing continues;
nothing here raises for malformed input. Output order follows input order.

PDF text is matched one line at a time. A transaction whose description wraps
onto a following line before the amount appears is not reconstructed and is
skipped.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from budgettracker.domain.amounts import normalize_amount_sign, parse_amount
from budgettracker.domain.categories import categorize_description
from budgettracker.domain.dates import parse_statement_date, utc_midnight
from budgettracker.logger import get_logger
from budgettracker.models import TransactionRecord

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "Transaction"

DATE_HEADERS = ("date", "transaction date", "posting date", "value date", "datum")
DESCRIPTION_HEADERS = (
    "description",
    "memo",
    "details",
    "transaction details",
    "payee",
    "beschreibung",
    "verwendungszweck",
)
AMOUNT_HEADERS = (
    "amount",
    "debit",
    "credit",
    "transaction amount",
    "value",
    "betrag",
    "umsatz",
)
CATEGORY_HEADERS = ("category", "type", "transaction type", "kategorie")

_PDF_TRANSACTION = re.compile(r"(\d{1,2}/\d{1,2}/\d{4})\s+(.+?)\s+([-$]?\d+\.\d{2})")


@dataclass(frozen=True)
class ColumnMapping:
    date: int
    description: int
    amount: int
    category: int | None = None

    @property
    def min_fields(self) -> int:
        return max(self.date, self.description, self.amount) + 1


def split_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas that are not inside double quotes.

    Quote characters toggle the quoted state and are not kept.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def find_column_index(headers: list[str], candidates: tuple[str, ...]) -> int | None:
    for name in candidates:
        for index, header in enumerate(headers):
            if header and (name in header or header in name):
                return index
    return None


def detect_columns(header_line: str) -> ColumnMapping:
    headers = [header.strip().lower() for header in split_csv_line(header_line)]
    logger.debug("CSV headers detected: %s", headers)

    date_index = find_column_index(headers, DATE_HEADERS)
    description_index = find_column_index(headers, DESCRIPTION_HEADERS)
    amount_index = find_column_index(headers, AMOUNT_HEADERS)

    mapping = ColumnMapping(
        date=0 if date_index is None else date_index,
        description=1 if description_index is None else description_index,
        amount=2 if amount_index is None else amount_index,
        category=find_column_index(headers, CATEGORY_HEADERS),
    )
    logger.debug("CSV column mapping: %s", mapping)
    return mapping


def _clean_field(fields: list[str], index: int | None) -> str:
    if index is None or index >= len(fields):
        return ""
    return fields[index].replace('"', "").strip()


def _new_id(prefix: str, row: int) -> str:
    return f"{prefix}-{row}-{uuid4().hex[:12]}"


def parse_csv(
    content: str,
    user_tag: str | None = None,
    *,
    day_first: bool = True,
    normalize_signs: bool = False,
) -> list[TransactionRecord]:
    lines = content.strip().splitlines()
    if len(lines) < 2:
        logger.warning("CSV content has no data rows.")
        return []

    mapping = detect_columns(lines[0])
    transactions: list[TransactionRecord] = []

    for row_number, raw_line in enumerate(lines[1:], start=1):
        line = raw_line.strip()
        if not line:
            continue

        fields = split_csv_line(line)
        if len(fields) < mapping.min_fields:
            logger.debug("Row %d skipped: %d fields, need %d.", row_number, len(fields), mapping.min_fields)
            continue

        date_str = _clean_field(fields, mapping.date)
        description = _clean_field(fields, mapping.description) or DEFAULT_DESCRIPTION
        amount_str = _clean_field(fields, mapping.amount)
        category = _clean_field(fields, mapping.category)

        date_value = parse_statement_date(date_str, day_first=day_first)
        amount = parse_amount(amount_str)
        if date_value is None or amount == 0:
            logger.debug(
                "Row %d skipped: date=%r amount=%r did not parse.", row_number, date_str, amount_str
            )
            continue

        category = category or categorize_description(description)
        if normalize_signs:
            amount = normalize_amount_sign(amount, category, description)

        transactions.append(TransactionRecord(
            id=_new_id("csv", row_number),
            date=date_value,
            description=description,
            amount=amount,
            category=category,
            user_name=user_tag,
        ))

    logger.info("Parsed %d transactions from %d CSV rows.", len(transactions), len(lines) - 1)
    return transactions


def parse_pdf(
    content: str,
    user_tag: str | None = None,
    *,
    day_first: bool = True,
    normalize_signs: bool = False,
) -> list[TransactionRecord]:
    fallback_date = utc_midnight(datetime.now(timezone.utc).date())
    transactions: list[TransactionRecord] = []

    for index, line in enumerate(content.split("\n")):
        match = _PDF_TRANSACTION.search(line)
        if not match:
            continue

        date_str, raw_description, amount_str = match.groups()
        description = raw_description.strip()
        amount = parse_amount(amount_str)
        if not description or amount == 0:
            logger.debug("PDF line %d skipped: %r", index, line)
            continue

        category = categorize_description(description)
        if normalize_signs:
            amount = normalize_amount_sign(amount, category, description)

        date_value = parse_statement_date(date_str, day_first=day_first)
        if date_value is None:
            logger.debug("PDF line %d: date %r unreadable, using today.", index, date_str)
            date_value = fallback_date

        transactions.append(TransactionRecord(
            id=_new_id("pdf", index),
            date=date_value,
            description=description,
            amount=amount,
            category=category,
            user_name=user_tag,
        ))

    logger.info("Parsed %d transactions from PDF text.", len(transactions))
    return transactions
