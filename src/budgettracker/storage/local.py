import asyncio
import json
import os
from typing import Any

from pydantic import TypeAdapter, ValidationError

from budgettracker.core import settings
from budgettracker.logger import get_logger
from budgettracker.models import RecurringTemplate, TransactionRecord

from .base import TransactionStore

logger = get_logger(__name__)

_TRANSACTIONS = TypeAdapter(list[TransactionRecord])
_TEMPLATES = TypeAdapter(list[RecurringTemplate])


class JsonFileStore(TransactionStore):
    def __init__(self, data_dir: str = "."):
        self.transactions_path = os.path.join(data_dir, settings.TRANSACTIONS_FILENAME)
        self.templates_path = os.path.join(data_dir, settings.RECURRING_FILENAME)
        self._lock = asyncio.Lock()

    def _read(self, path: str) -> list[Any]:
        if not os.path.exists(path):
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.error("[STORE] %s is not valid JSON; treating it as empty.", path)
            return []
        if not isinstance(data, list):
            logger.error("[STORE] %s does not hold a list; treating it as empty.", path)
            return []
        return data

    def _write(self, path: str, payload: list[Any]) -> None:
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, path)

    def _read_transactions(self) -> list[TransactionRecord]:
        try:
            return _TRANSACTIONS.validate_python(self._read(self.transactions_path))
        except ValidationError as exc:
            logger.error("[STORE] Invalid transactions in %s: %s", self.transactions_path, exc)
            return []

    def _read_templates(self) -> list[RecurringTemplate]:
        try:
            return _TEMPLATES.validate_python(self._read(self.templates_path))
        except ValidationError as exc:
            logger.error("[STORE] Invalid templates in %s: %s", self.templates_path, exc)
            return []

    async def load_transactions(self) -> list[TransactionRecord]:
        async with self._lock:
            records = await asyncio.to_thread(self._read_transactions)
        return sorted(records, key=lambda record: record.date, reverse=True)

    async def save_transactions(self, records: list[TransactionRecord]) -> list[TransactionRecord]:
        if not records:
            return []
        async with self._lock:
            existing = await asyncio.to_thread(self._read_transactions)
            existing.extend(records)
            await asyncio.to_thread(
                self._write,
                self.transactions_path,
                _TRANSACTIONS.dump_python(existing, mode="json", by_alias=True),
            )
        logger.info("[STORE] Saved %d transactions to %s", len(records), self.transactions_path)
        return list(records)

    async def load_templates(self) -> list[RecurringTemplate]:
        async with self._lock:
            return await asyncio.to_thread(self._read_templates)

    async def save_templates(self, templates: list[RecurringTemplate]) -> None:
        if not templates:
            return
        async with self._lock:
            existing = await asyncio.to_thread(self._read_templates)
            by_id = {template.id: template for template in existing}
            for template in templates:
                by_id[template.id] = template
            await asyncio.to_thread(
                self._write,
                self.templates_path,
                _TEMPLATES.dump_python(list(by_id.values()), mode="json", by_alias=True),
            )
        logger.info("[STORE] Saved %d recurring templates to %s", len(templates), self.templates_path)
