import math
import re

from budgettracker.domain.categories import DEFAULT_CATEGORY, INCOME_CATEGORY, category_names

_CURRENCY_AND_SPACE = re.compile(r"[€$£¥\s]")
_DECIMAL_COMMA = re.compile(r"^[^,]*,\d{1,2}$")

# Descriptions that mark money coming back even inside an expense category.
REFUND_KEYWORDS = ("refund", "cashback", "rebate", "return", "credit", "reimbursement")


def parse_amount(value: str | None) -> float:
    """Parse a statement amount, returning ``0.0`` when it is not a number.

    Handles currency symbols, accounting parentheses for negatives, and both
    ``1,250.50`` and ``1.250,50`` separator conventions. When both separators
    appear the rightmost one is the decimal point. A lone comma followed by one
    or two trailing digits is a decimal comma; any other comma groups thousands.
    """
    if not value:
        return 0.0
    cleaned = _CURRENCY_AND_SPACE.sub("", value)
    if not cleaned:
        return 0.0

    if "(" in cleaned and ")" in cleaned:
        cleaned = "-" + cleaned.replace("(", "").replace(")", "").lstrip("-")

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        if _DECIMAL_COMMA.match(cleaned):
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")

    try:
        amount = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def normalize_amount_sign(amount: float, category: str, description: str) -> float:
    """Force the sign implied by the category.

    Income is always positive. Canonical expense categories are negative
    unless the description reads like a refund. Categories outside the
    canonical vocabulary keep the sign the bank exported.
    """
    if category == INCOME_CATEGORY:
        return abs(amount)
    if category in category_names() or category == DEFAULT_CATEGORY:
        lowered = description.lower()
        if any(keyword in lowered for keyword in REFUND_KEYWORDS):
            return abs(amount)
        return -abs(amount)
    return amount
