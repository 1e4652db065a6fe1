from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from budgettracker.api.dependencies import get_processor
from budgettracker.api.schemas import ProcessResponse, RecurringTemplateView
from budgettracker.domain.recurrence import describe_frequency, is_due, next_due_date
from budgettracker.models import RecurringTemplate
from budgettracker.services.recurring import RecurringProcessor, TemplateValidationError

router = APIRouter(prefix="/api/recurring")


def _view(template: RecurringTemplate, today: date) -> RecurringTemplateView:
    return RecurringTemplateView(
        **template.model_dump(exclude={"next_due_date"}),
        next_due_date=template.next_due_date or next_due_date(template),
        is_due=is_due(template, today),
        frequency_label=describe_frequency(template.frequency),
    )


@router.get("", response_model=list[RecurringTemplateView])
async def list_recurring(
    processor: Annotated[RecurringProcessor, Depends(get_processor)],
    today: date | None = None,
) -> list[RecurringTemplateView]:
    run_day = today or processor.clock()
    templates = await processor.list_templates()
    return [_view(template, run_day) for template in templates]


@router.post("", response_model=RecurringTemplateView, status_code=201)
async def create_recurring(
    payload: Annotated[dict[str, Any], Body()],
    processor: Annotated[RecurringProcessor, Depends(get_processor)],
) -> RecurringTemplateView | JSONResponse:
    try:
        template = await processor.create_template(payload)
    except TemplateValidationError as exc:
        return JSONResponse(status_code=422, content={"errors": exc.errors})
    except ValidationError as exc:
        return JSONResponse(
            status_code=422,
            content={"errors": [error["msg"] for error in exc.errors()]},
        )
    return _view(template, processor.clock())


@router.post("/process", response_model=ProcessResponse)
async def process_recurring(
    processor: Annotated[RecurringProcessor, Depends(get_processor)],
    today: date | None = None,
) -> ProcessResponse:
    run_day = today or processor.clock()
    result = await processor.run_once(run_day)
    return ProcessResponse(
        today=run_day,
        materialized=result.materialized,
        count=len(result.materialized),
    )


@router.get("/status")
async def processor_status(
    processor: Annotated[RecurringProcessor, Depends(get_processor)],
) -> dict:
    return processor.get_status()


@router.post("/{template_id}/deactivate", response_model=RecurringTemplateView)
async def deactivate_recurring(
    template_id: str,
    processor: Annotated[RecurringProcessor, Depends(get_processor)],
) -> RecurringTemplateView:
    template = await processor.deactivate(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Recurring template not found")
    return _view(template, processor.clock())
