import asyncio
import os
from datetime import date
from typing import Any

import httpx

from budgettracker.domain.dates import parse_statement_date
from budgettracker.logger import get_logger
from budgettracker.models import RecurringTemplate, TransactionRecord, TransactionTemplate
from budgettracker.storage.base import TransactionStore

logger = get_logger(__name__)

TRANSACTIONS_TABLE = "transactions"
RECURRING_TABLE = "recurring_transactions"


def _row_to_transaction(row: dict[str, Any]) -> TransactionRecord | None:
    date_value = parse_statement_date(str(row.get("date") or ""))
    if date_value is None:
        logger.warning("[STORE] Skipping transaction %s with unreadable date %r", row.get("id"), row.get("date"))
        return None
    user_id = row.get("user_id")
    return TransactionRecord(
        id=str(row.get("id")),
        date=date_value,
        description=row.get("description") or "",
        amount=float(row.get("amount") or 0.0),
        category=row.get("category") or "",
        user_name=row.get("user_name"),
        user_id=str(user_id) if user_id is not None else None,
    )


def _transaction_to_row(record: TransactionRecord) -> dict[str, Any]:
    # The table assigns its own id.
    return {
        "date": record.date.date().isoformat(),
        "description": record.description,
        "amount": record.amount,
        "category": record.category,
        "user_name": record.user_name,
        "user_id": record.user_id,
    }


def _optional_date(value: Any) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _row_to_template(row: dict[str, Any]) -> RecurringTemplate:
    user_id = row.get("user_id")
    return RecurringTemplate(
        id=str(row["id"]),
        template=TransactionTemplate(
            description=row.get("description") or "",
            amount=float(row.get("amount") or 0.0),
            category=row.get("category") or "",
            user_name=row.get("user_name"),
            user_id=str(user_id) if user_id is not None else None,
        ),
        frequency=row["frequency"],
        start_date=_optional_date(row.get("start_date")),
        end_date=_optional_date(row.get("end_date")),
        is_active=bool(row.get("is_active", True)),
        last_processed=_optional_date(row.get("last_processed")),
        next_due_date=_optional_date(row.get("next_due_date")),
    )


def _template_to_row(template: RecurringTemplate) -> dict[str, Any]:
    def iso(value: date | None) -> str | None:
        return value.isoformat() if value else None

    return {
        "id": template.id,
        "description": template.template.description,
        "amount": template.template.amount,
        "category": template.template.category,
        "user_name": template.template.user_name,
        "user_id": template.template.user_id,
        "frequency": template.frequency.value,
        "start_date": template.start_date.isoformat(),
        "end_date": iso(template.end_date),
        "is_active": template.is_active,
        "last_processed": iso(template.last_processed),
        "next_due_date": iso(template.next_due_date),
    }


class SupabaseStore(TransactionStore):
    """Storage port backed by Supabase's PostgREST API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_KEY")
        if not self.base_url or not self.api_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase storage backend.")
        self.headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer
        response = await client.request(
            method,
            self._table_url(table),
            headers=headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("[STORE] Supabase %s %s failed: %s", method, table, exc)
            raise
        return response

    async def load_transactions(self) -> list[TransactionRecord]:
        response = await self._request(
            "GET",
            TRANSACTIONS_TABLE,
            params={"select": "*", "order": "date.desc"},
        )
        records = [_row_to_transaction(row) for row in response.json()]
        return [record for record in records if record is not None]

    async def save_transactions(self, records: list[TransactionRecord]) -> list[TransactionRecord]:
        if not records:
            return []
        response = await self._request(
            "POST",
            TRANSACTIONS_TABLE,
            json=[_transaction_to_row(record) for record in records],
            prefer="return=representation",
        )
        saved = [_row_to_transaction(row) for row in response.json()]
        logger.info("[STORE] Saved %d transactions to Supabase", len(records))
        return [record for record in saved if record is not None]

    async def load_templates(self) -> list[RecurringTemplate]:
        response = await self._request(
            "GET",
            RECURRING_TABLE,
            params={"select": "*", "order": "start_date.asc"},
        )
        return [_row_to_template(row) for row in response.json()]

    async def save_templates(self, templates: list[RecurringTemplate]) -> None:
        if not templates:
            return
        await self._request(
            "POST",
            RECURRING_TABLE,
            json=[_template_to_row(template) for template in templates],
            prefer="resolution=merge-duplicates,return=minimal",
        )
        logger.info("[STORE] Saved %d recurring templates to Supabase", len(templates))
