from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from budgettracker.api.dependencies import get_importer
from budgettracker.api.schemas import StatementRequest, TransactionsResponse
from budgettracker.logger import get_logger
from budgettracker.services.importer import StatementImporter, UnsupportedStatementError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/statements")


@router.post("/parse", response_model=TransactionsResponse)
async def parse_statement(
    req: StatementRequest,
    importer: Annotated[StatementImporter, Depends(get_importer)],
) -> TransactionsResponse:
    try:
        records = await importer.parse_async(req.filename, req.content, req.user_name)
    except UnsupportedStatementError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionsResponse(transactions=records, count=len(records))


@router.post("/import", response_model=TransactionsResponse)
async def import_statement(
    req: StatementRequest,
    importer: Annotated[StatementImporter, Depends(get_importer)],
) -> TransactionsResponse:
    try:
        saved = await importer.import_statement(req.filename, req.content, req.user_name)
    except UnsupportedStatementError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("[IMPORT] %s: %d transactions saved.", req.filename, len(saved))
    return TransactionsResponse(transactions=saved, count=len(saved))
