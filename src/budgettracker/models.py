from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class Frequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class _CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire; both accepted on input.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecord(_CamelModel):
    id: str
    date: datetime  # UTC midnight
    description: str
    amount: float  # negative = expense
    category: str
    user_name: str | None = None
    user_id: str | None = None

    @field_serializer("date")
    def _serialize_date(self, value: datetime) -> str:
        return value.isoformat()


class TransactionTemplate(_CamelModel):
    """A transaction without ``id`` and ``date``; what a recurring schedule repeats."""
    description: str
    amount: float
    category: str
    user_name: str | None = None
    user_id: str | None = None


class RecurringTemplate(_CamelModel):
    id: str
    template: TransactionTemplate
    frequency: Frequency
    start_date: date
    end_date: date | None = None
    is_active: bool = True
    last_processed: date | None = None
    next_due_date: date | None = None  # cached; derived when missing


class CategorySuggestion(BaseModel):
    category: str
    keyword: str | None = None  # None when falling back to the default


@dataclass(frozen=True)
class ProcessResult:
    materialized: list[TransactionRecord] = field(default_factory=list)
    updated: list[RecurringTemplate] = field(default_factory=list)
