from datetime import date, datetime, timezone

import pytest

from budgettracker.domain.recurrence import (
    advance,
    describe_frequency,
    is_due,
    materialize,
    next_due_date,
    process_due,
    validate_recurring_template,
)
from budgettracker.models import Frequency, RecurringTemplate, TransactionTemplate


def make_template(**overrides) -> RecurringTemplate:
    values = {
        "id": "rent",
        "template": TransactionTemplate(description="Monthly Rent", amount=-1200.0, category="Bills"),
        "frequency": Frequency.MONTHLY,
        "start_date": date(2024, 1, 31),
    }
    values.update(overrides)
    return RecurringTemplate(**values)


def valid_payload(**overrides) -> dict:
    payload = {
        "template": {"description": "Gym", "amount": -40, "category": "Healthcare"},
        "frequency": "monthly",
        "startDate": "2024-03-01",
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "frequency, expected",
    [
        (Frequency.WEEKLY, date(2024, 2, 7)),
        (Frequency.MONTHLY, date(2024, 2, 29)),
        (Frequency.QUARTERLY, date(2024, 4, 30)),
        (Frequency.YEARLY, date(2025, 1, 31)),
    ],
)
def test_next_due_date_from_start(frequency: Frequency, expected: date) -> None:
    assert next_due_date(make_template(frequency=frequency)) == expected


def test_next_due_date_counts_from_last_processed() -> None:
    template = make_template(last_processed=date(2024, 2, 29))
    assert next_due_date(template) == date(2024, 3, 29)


def test_monthly_schedule_clamps_in_short_months() -> None:
    template = make_template(start_date=date(2023, 1, 31))
    assert next_due_date(template) == date(2023, 2, 28)


def test_is_due_on_and_after_due_date() -> None:
    template = make_template()
    assert not is_due(template, date(2024, 2, 28))
    assert is_due(template, date(2024, 2, 29))
    assert is_due(template, date(2024, 3, 10))


def test_monthly_template_due_on_same_day_next_month() -> None:
    template = make_template(start_date=date(2024, 1, 15))
    assert not is_due(template, date(2024, 2, 14))
    assert is_due(template, date(2024, 2, 15))


def test_inactive_template_is_never_due() -> None:
    template = make_template(is_active=False)
    assert not is_due(template, date(2030, 1, 1))


def test_end_date_is_inclusive() -> None:
    template = make_template(end_date=date(2024, 2, 29))
    assert is_due(template, date(2024, 2, 29))
    assert not is_due(template, date(2024, 3, 1))


def test_cached_next_due_date_is_used() -> None:
    template = make_template(next_due_date=date(2024, 6, 1))
    assert not is_due(template, date(2024, 3, 1))
    assert is_due(template, date(2024, 6, 1))


def test_materialize_copies_template_fields() -> None:
    template = make_template(
        template=TransactionTemplate(
            description="Netflix", amount=-15.99, category="Entertainment", user_name="Sam", user_id="u-1"
        )
    )

    record = materialize(template, date(2024, 2, 29))

    assert record.id.startswith("recurring-rent-2024-02-29-")
    assert record.date == datetime(2024, 2, 29, tzinfo=timezone.utc)
    assert record.description == "Netflix"
    assert record.amount == -15.99
    assert record.category == "Entertainment"
    assert record.user_name == "Sam"
    assert record.user_id == "u-1"


def test_materialized_ids_are_unique() -> None:
    template = make_template()
    first = materialize(template, date(2024, 2, 29))
    second = materialize(template, date(2024, 2, 29))
    assert first.id != second.id


def test_advance_sets_last_processed_and_next_due() -> None:
    template = make_template()

    advanced = advance(template, date(2024, 2, 29))

    assert advanced.last_processed == date(2024, 2, 29)
    assert advanced.next_due_date == date(2024, 3, 29)
    assert template.last_processed is None


def test_processed_template_is_not_due_again_same_day() -> None:
    today = date(2024, 2, 29)
    result = process_due([make_template()], today)

    assert len(result.materialized) == 1
    assert not is_due(result.updated[0], today)

    again = process_due(result.updated, today)
    assert again.materialized == []


def test_process_due_keeps_order_and_passes_through_idle_templates() -> None:
    due = make_template(id="due")
    idle = make_template(id="idle", start_date=date(2024, 2, 20))
    inactive = make_template(id="inactive", is_active=False)

    result = process_due([idle, due, inactive], date(2024, 2, 29))

    assert [t.id for t in result.updated] == ["idle", "due", "inactive"]
    assert result.updated[0] is idle
    assert result.updated[2] is inactive
    assert result.updated[1] is not due
    assert [r.id.split("-")[1] for r in result.materialized] == ["due"]


def test_process_due_with_nothing_due() -> None:
    result = process_due([], date(2024, 1, 1))
    assert result.materialized == []
    assert result.updated == []


def test_weekly_schedule_runs_one_period_per_pass() -> None:
    template = make_template(frequency=Frequency.WEEKLY, start_date=date(2024, 1, 1))

    # Missed several weeks: one transaction per run, anchored on the run date.
    result = process_due([template], date(2024, 1, 29))

    assert len(result.materialized) == 1
    assert result.updated[0].next_due_date == date(2024, 2, 5)


def test_describe_frequency() -> None:
    assert describe_frequency(Frequency.WEEKLY) == "Every week"
    assert describe_frequency("monthly") == "Every month"
    assert describe_frequency("quarterly") == "Every 3 months"
    assert describe_frequency(Frequency.YEARLY) == "Every year"
    assert describe_frequency("fortnightly") == "Every month"


def test_valid_payload_has_no_errors() -> None:
    assert validate_recurring_template(valid_payload(), date(2024, 3, 1)) == []
    snake = valid_payload(start_date="2024-03-05", end_date="2024-12-31")
    del snake["startDate"]
    assert validate_recurring_template(snake, date(2024, 3, 1)) == []


def test_empty_payload_reports_every_problem() -> None:
    assert validate_recurring_template({}, date(2024, 3, 1)) == [
        "Description is required",
        "Valid amount is required",
        "Category is required",
        "Frequency is required",
        "Start date is required",
    ]


@pytest.mark.parametrize("amount", [0, None, "abc", float("nan"), True])
def test_invalid_amounts(amount) -> None:
    payload = valid_payload(template={"description": "Gym", "amount": amount, "category": "Healthcare"})
    assert validate_recurring_template(payload, date(2024, 3, 1)) == ["Valid amount is required"]


def test_start_date_in_the_past() -> None:
    errors = validate_recurring_template(valid_payload(startDate="2024-02-01"), date(2024, 3, 1))
    assert errors == ["Start date cannot be in the past"]


def test_end_date_must_follow_start_date() -> None:
    errors = validate_recurring_template(valid_payload(endDate="2024-03-01"), date(2024, 3, 1))
    assert errors == ["End date must be after start date"]


def test_unknown_frequency() -> None:
    errors = validate_recurring_template(valid_payload(frequency="daily"), date(2024, 3, 1))
    assert errors == ["Frequency is required"]


@pytest.mark.parametrize("frequency", [["monthly"], {"every": "month"}, 30])
def test_non_string_frequency(frequency) -> None:
    errors = validate_recurring_template(valid_payload(frequency=frequency), date(2024, 3, 1))
    assert errors == ["Frequency is required"]
