from abc import ABC, abstractmethod

from budgettracker.models import RecurringTemplate, TransactionRecord


class TransactionStore(ABC):
    @abstractmethod
    async def load_transactions(self) -> list[TransactionRecord]:
        """Return stored transactions, newest first."""
        pass

    @abstractmethod
    async def save_transactions(self, records: list[TransactionRecord]) -> list[TransactionRecord]:
        """Append records and return them as stored (the store may assign ids)."""
        pass

    @abstractmethod
    async def load_templates(self) -> list[RecurringTemplate]:
        """Return all recurring templates in creation order."""
        pass

    @abstractmethod
    async def save_templates(self, templates: list[RecurringTemplate]) -> None:
        """Insert or replace templates by id."""
        pass

    async def aclose(self) -> None:
        return None
