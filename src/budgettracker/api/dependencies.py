from fastapi import HTTPException, Request

from budgettracker.services.importer import StatementImporter
from budgettracker.services.recurring import RecurringProcessor
from budgettracker.storage.base import TransactionStore


def get_store(request: Request) -> TransactionStore:
    store = getattr(request.app.state, "store", None)
    if not store:
        raise HTTPException(status_code=500, detail="Storage not initialized")
    return store


def get_importer(request: Request) -> StatementImporter:
    importer = getattr(request.app.state, "importer", None)
    if not importer:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return importer


def get_processor(request: Request) -> RecurringProcessor:
    processor = getattr(request.app.state, "processor", None)
    if not processor:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return processor
