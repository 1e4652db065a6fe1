import asyncio
import os
from time import perf_counter

from budgettracker.domain.statements import parse_csv, parse_pdf
from budgettracker.logger import get_logger
from budgettracker.models import TransactionRecord
from budgettracker.storage.base import TransactionStore

logger = get_logger(__name__)

CSV_EXTENSIONS = frozenset({".csv"})
# PDF statements arrive here as already-extracted text.
TEXT_EXTENSIONS = frozenset({".pdf", ".txt"})


class UnsupportedStatementError(ValueError):
    pass


def statement_kind(filename: str) -> str:
    extension = os.path.splitext(filename.strip().lower())[1]
    if extension in CSV_EXTENSIONS:
        return "csv"
    if extension in TEXT_EXTENSIONS:
        return "pdf"
    raise UnsupportedStatementError(
        f"Unsupported statement file '{filename}'. Expected .csv, .pdf or .txt."
    )


class StatementImporter:
    def __init__(
        self,
        store: TransactionStore,
        *,
        day_first: bool = True,
        normalize_signs: bool = False,
    ) -> None:
        self.store = store
        self.day_first = day_first
        self.normalize_signs = normalize_signs

    def parse(self, filename: str, content: str, user_name: str | None = None) -> list[TransactionRecord]:
        kind = statement_kind(filename)
        parser = parse_csv if kind == "csv" else parse_pdf
        start = perf_counter()
        records = parser(
            content,
            user_name,
            day_first=self.day_first,
            normalize_signs=self.normalize_signs,
        )
        logger.info(
            "[IMPORT] %s: %d transactions parsed as %s in %.1f ms",
            filename,
            len(records),
            kind,
            (perf_counter() - start) * 1000,
        )
        return records

    async def parse_async(
        self, filename: str, content: str, user_name: str | None = None
    ) -> list[TransactionRecord]:
        return await asyncio.to_thread(self.parse, filename, content, user_name)

    async def import_statement(
        self, filename: str, content: str, user_name: str | None = None
    ) -> list[TransactionRecord]:
        records = await self.parse_async(filename, content, user_name)
        if not records:
            logger.warning("[IMPORT] %s: no transactions found, nothing saved.", filename)
            return []
        return await self.store.save_transactions(records)
