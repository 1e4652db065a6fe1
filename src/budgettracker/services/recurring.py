import asyncio
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any
from uuid import uuid4

from budgettracker.domain.recurrence import process_due, validate_recurring_template
from budgettracker.logger import get_logger
from budgettracker.models import ProcessResult, RecurringTemplate
from budgettracker.storage.base import TransactionStore

logger = get_logger(__name__)


class TemplateValidationError(ValueError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class RecurringProcessor:
    """Applies the recurrence rules to the stored templates.

    ``run_once`` materializes whatever is due and persists both the new
    transactions and the advanced templates. ``start`` runs it immediately and
    then every ``interval_minutes`` until ``stop`` is awaited.
    """

    def __init__(
        self,
        store: TransactionStore,
        interval_minutes: int = 60,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.interval_minutes = interval_minutes
        self.clock = clock
        self._run_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self.status: dict[str, Any] = {"last_run": None, "last_materialized": 0, "runs": 0}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_status(self) -> dict[str, Any]:
        status = dict(self.status)
        status["running"] = self.running
        status["interval_minutes"] = self.interval_minutes
        return status

    async def list_templates(self) -> list[RecurringTemplate]:
        return await self.store.load_templates()

    async def create_template(
        self, payload: Mapping[str, Any], today: date | None = None
    ) -> RecurringTemplate:
        errors = validate_recurring_template(payload, today or self.clock())
        if errors:
            raise TemplateValidationError(errors)
        template = RecurringTemplate.model_validate({**payload, "id": uuid4().hex})
        await self.store.save_templates([template])
        logger.info(
            "[RECURRING] Created %s template '%s' (%s)",
            template.frequency.value,
            template.template.description,
            template.id,
        )
        return template

    async def deactivate(self, template_id: str) -> RecurringTemplate | None:
        async with self._run_lock:
            templates = await self.store.load_templates()
            for template in templates:
                if template.id == template_id:
                    updated = template.model_copy(update={"is_active": False})
                    await self.store.save_templates([updated])
                    logger.info("[RECURRING] Deactivated template %s", template_id)
                    return updated
        return None

    async def run_once(self, today: date | None = None) -> ProcessResult:
        run_day = today or self.clock()
        async with self._run_lock:
            templates = await self.store.load_templates()
            result = process_due(templates, run_day)
            if result.materialized:
                changed = [
                    (old, new) for old, new in zip(templates, result.updated) if new is not old
                ]
                # Schedules are saved before transactions; a failed run never repeats a period.
                await self.store.save_templates([new for _, new in changed])
                try:
                    await self.store.save_transactions(result.materialized)
                except Exception:
                    logger.error(
                        "[RECURRING] Saving %d transactions failed; restoring %d schedules.",
                        len(result.materialized),
                        len(changed),
                    )
                    await self.store.save_templates([old for old, _ in changed])
                    raise
            for record in result.materialized:
                logger.info(
                    "[RECURRING] Processed recurring transaction: %s (%.2f)",
                    record.description,
                    record.amount,
                )

        self.status.update({
            "last_run": datetime.now().isoformat(timespec="seconds"),
            "last_materialized": len(result.materialized),
            "runs": self.status["runs"] + 1,
        })
        logger.debug(
            "[RECURRING] Run for %s: %d of %d templates due.",
            run_day,
            len(result.materialized),
            len(templates),
        )
        return result

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                # Keep the timer alive; the next tick retries.
                logger.exception("[RECURRING] Processing run failed.")
            await asyncio.sleep(self.interval_minutes * 60)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="recurring-processor")
        logger.info("[RECURRING] Processor started (every %s min).", self.interval_minutes)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[RECURRING] Processor stopped.")
