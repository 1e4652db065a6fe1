from fastapi import APIRouter

from budgettracker.api.schemas import SuggestRequest
from budgettracker.domain.categories import DEFAULT_CATEGORY, category_names, suggest_category
from budgettracker.models import CategorySuggestion

router = APIRouter(prefix="/api/categories")


@router.get("")
async def get_categories() -> list[str]:
    return [*category_names(), DEFAULT_CATEGORY]


@router.post("/suggest", response_model=CategorySuggestion)
async def suggest(req: SuggestRequest) -> CategorySuggestion:
    return suggest_category(req.description)
