from datetime import date

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from budgettracker.models import RecurringTemplate, TransactionRecord


class StatementRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: str
    content: str
    user_name: str | None = None


class TransactionsResponse(BaseModel):
    transactions: list[TransactionRecord]
    count: int


class SuggestRequest(BaseModel):
    description: str


class RecurringTemplateView(RecurringTemplate):
    # next_due_date is always filled in here, derived when not cached.
    is_due: bool
    frequency_label: str


class ProcessResponse(BaseModel):
    today: date
    materialized: list[TransactionRecord]
    count: int
