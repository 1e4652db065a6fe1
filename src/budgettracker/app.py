from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from budgettracker.api.routes import categories, recurring, statements, transactions
from budgettracker.core import settings
from budgettracker.logger import get_logger, setup_logging
from budgettracker.services.importer import StatementImporter
from budgettracker.services.recurring import RecurringProcessor
from budgettracker.storage.factory import create_store

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        store = create_store()
        importer = StatementImporter(
            store,
            day_first=settings.get_day_first(),
            normalize_signs=settings.get_env_bool("NORMALIZE_AMOUNT_SIGNS", False),
        )
        processor = RecurringProcessor(
            store,
            interval_minutes=settings.RECURRING_INTERVAL_MINUTES,
        )

        app.state.store = store
        app.state.importer = importer
        app.state.processor = processor

        if settings.get_env_bool("RECURRING_AUTOPROCESS", True):
            processor.start()
        else:
            logger.info("RECURRING_AUTOPROCESS disabled. Recurring templates run only on request.")

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        await processor.stop()
        await store.aclose()

    app = FastAPI(title="Budget Tracker", lifespan=lifespan)

    app.include_router(statements.router)
    app.include_router(transactions.router)
    app.include_router(categories.router)
    app.include_router(recurring.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
