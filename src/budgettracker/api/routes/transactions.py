from typing import Annotated

from fastapi import APIRouter, Depends

from budgettracker.api.dependencies import get_store
from budgettracker.api.schemas import TransactionsResponse
from budgettracker.storage.base import TransactionStore

router = APIRouter()


@router.get("/api/transactions", response_model=TransactionsResponse)
async def list_transactions(
    store: Annotated[TransactionStore, Depends(get_store)],
    limit: int | None = None,
) -> TransactionsResponse:
    records = await store.load_transactions()
    if limit is not None and limit >= 0:
        records = records[:limit]
    return TransactionsResponse(transactions=records, count=len(records))
