import math
from typing import Optional


CLOSE_TO_LIMIT_PERCENT = 80.0
OVER_BUDGET_PERCENT = 100.0

OVER_BUDGET = "over_budget"
CLOSE_TO_LIMIT = "close_to_limit"
ON_TRACK = "on_track"
NO_BUDGET = "no_budget"

STATUS_LABELS = {
    OVER_BUDGET: "Over Budget!",
    CLOSE_TO_LIMIT: "Close to Limit",
    ON_TRACK: "On Track",
    NO_BUDGET: "No Budget Set",
}


def budget_usage(total_expenses: float, limit: Optional[float]) -> Optional[float]:
    """Percentage of the limit already spent, or None when no budget is set."""
    if not limit or limit <= 0:
        return None
    return total_expenses / limit * 100


def classify_usage(usage: Optional[float]) -> str:
    if usage is None:
        return NO_BUDGET
    if usage >= OVER_BUDGET_PERCENT:
        return OVER_BUDGET
    if usage >= CLOSE_TO_LIMIT_PERCENT:
        return CLOSE_TO_LIMIT
    return ON_TRACK


def classify(total_expenses: float, limit: Optional[float]) -> str:
    return classify_usage(budget_usage(total_expenses, limit))


def status_label(state: str) -> str:
    return STATUS_LABELS[state]


def progress(usage: Optional[float]) -> float:
    if usage is None:
        return 0.0
    return max(0.0, min(usage, 100.0))


def display_usage(usage: Optional[float]) -> Optional[float]:
    """Usage truncated to one decimal, so 99.96 shows as 99.9 and stays below the over-budget line."""
    if usage is None:
        return None
    # the epsilon absorbs float noise such as 28.999999999999996
    return math.floor(usage * 10 + 1e-9) / 10
