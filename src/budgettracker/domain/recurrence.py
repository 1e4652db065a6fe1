"""Recurring transaction schedules.

A :class:`RecurringTemplate` repeats a transaction weekly, monthly, quarterly
or yearly. The functions here decide whether a template is due on a given
day, advance its schedule, and turn it into concrete transactions. They never
read the clock: callers pass ``today`` explicitly.

A template moves between "not due" and "due" as ``today`` reaches its next
due date, and back to "not due" once processed. Deactivating it, or passing
its end date, is final.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any
from uuid import uuid4

from budgettracker.domain.dates import add_months, utc_midnight
from budgettracker.models import Frequency, ProcessResult, RecurringTemplate, TransactionRecord

_MONTHS_PER_PERIOD = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}

_FREQUENCY_LABELS = {
    Frequency.WEEKLY: "Every week",
    Frequency.MONTHLY: "Every month",
    Frequency.QUARTERLY: "Every 3 months",
    Frequency.YEARLY: "Every year",
}


def next_due_date(template: RecurringTemplate) -> date:
    base = template.last_processed or template.start_date
    if template.frequency == Frequency.WEEKLY:
        return base + timedelta(days=7)
    return add_months(base, _MONTHS_PER_PERIOD[template.frequency])


def is_due(template: RecurringTemplate, today: date) -> bool:
    if not template.is_active:
        return False
    # The end date itself still fires.
    if template.end_date is not None and today > template.end_date:
        return False
    due_on = template.next_due_date or next_due_date(template)
    return today >= due_on


def materialize(template: RecurringTemplate, on: date) -> TransactionRecord:
    return TransactionRecord(
        id=f"recurring-{template.id}-{on.isoformat()}-{uuid4().hex[:8]}",
        date=utc_midnight(on),
        **template.template.model_dump(),
    )


def advance(template: RecurringTemplate, processed_on: date) -> RecurringTemplate:
    processed = template.model_copy(update={"last_processed": processed_on})
    return processed.model_copy(update={"next_due_date": next_due_date(processed)})


def process_due(templates: Iterable[RecurringTemplate], today: date) -> ProcessResult:
    """Materialize every due template for ``today``.

    Returns the new transactions and the full template list in input order,
    with due templates advanced and the rest passed through as-is. Nothing is
    persisted here.
    """
    materialized: list[TransactionRecord] = []
    updated: list[RecurringTemplate] = []
    for template in templates:
        if is_due(template, today):
            materialized.append(materialize(template, today))
            updated.append(advance(template, today))
        else:
            updated.append(template)
    return ProcessResult(materialized=materialized, updated=updated)


def describe_frequency(frequency: Frequency | str) -> str:
    try:
        return _FREQUENCY_LABELS[Frequency(frequency)]
    except ValueError:
        return _FREQUENCY_LABELS[Frequency.MONTHLY]


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _valid_amount(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return amount == amount and amount != 0


def _get(data: Mapping[str, Any], snake: str, camel: str) -> Any:
    return data.get(snake, data.get(camel))


def validate_recurring_template(data: Mapping[str, Any], today: date) -> list[str]:
    """Check a template payload before it is saved.

    ``data`` may use snake_case or camelCase keys. Returns human-readable
    problems; an empty list means the payload can be stored.
    """
    errors: list[str] = []
    template = data.get("template")
    if not isinstance(template, Mapping):
        template = {}

    description = template.get("description")
    if not isinstance(description, str) or not description.strip():
        errors.append("Description is required")

    if not _valid_amount(template.get("amount")):
        errors.append("Valid amount is required")

    category = template.get("category")
    if not isinstance(category, str) or not category.strip():
        errors.append("Category is required")

    frequency = data.get("frequency")
    if not isinstance(frequency, str) or frequency not in {item.value for item in Frequency}:
        errors.append("Frequency is required")

    start_raw = _get(data, "start_date", "startDate")
    start_date = _as_date(start_raw)
    if start_date is None:
        errors.append("Start date is required")
    elif start_date < today:
        errors.append("Start date cannot be in the past")

    end_date = _as_date(_get(data, "end_date", "endDate"))
    if end_date is not None and start_date is not None and end_date <= start_date:
        errors.append("End date must be after start date")

    return errors
