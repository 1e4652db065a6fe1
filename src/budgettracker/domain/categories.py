"""Canonical spending categories and the keyword heuristic that assigns them.

This table is the single source for both statement import and the
manual-entry category suggestion. Order matters: the first category with a
keyword contained in the description wins, so "Coffee Shop" is Dining, not
Shopping.
"""

from budgettracker.models import CategorySuggestion

DEFAULT_CATEGORY = "Other"
INCOME_CATEGORY = "Income"

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Groceries", (
        "grocery", "supermarket", "food", "whole foods", "trader joe", "walmart",
        "costco", "safeway", "kroger", "publix", "aldi",
    )),
    ("Dining", (
        "restaurant", "cafe", "diner", "dining", "mcdonald", "starbucks", "subway",
        "pizza", "burger", "taco", "kfc", "domino", "chipotle", "dunkin", "coffee",
        "bakery", "bistro", "grill",
    )),
    ("Transportation", (
        "gas", "fuel", "shell", "exxon", "chevron", "texaco", "valero", "sunoco",
        "citgo", "uber", "lyft", "taxi", "parking", "toll",
    )),
    ("Bills", (
        "electric", "water", "internet", "phone", "utility", "rent", "mortgage",
        "insurance",
    )),
    ("Healthcare", (
        "pharmacy", "doctor", "hospital", "clinic", "dental", "medical",
        "prescription",
    )),
    ("Entertainment", (
        "netflix", "spotify", "cinema", "movie", "theater", "game", "subscription",
    )),
    ("Shopping", (
        "amazon", "shop", "store", "mall", "clothing", "electronics",
    )),
)


def category_names() -> list[str]:
    return [name for name, _ in CATEGORY_KEYWORDS]


def suggest_category(description: str) -> CategorySuggestion:
    lowered = description.lower()
    for name, keywords in CATEGORY_KEYWORDS:
        for keyword in keywords:
            if keyword in lowered:
                return CategorySuggestion(category=name, keyword=keyword)
    return CategorySuggestion(category=DEFAULT_CATEGORY)


def categorize_description(description: str) -> str:
    return suggest_category(description).category
