import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session, SQLModel

from ..core.aggregation import total_spent
from ..core.budget_status import budget_usage, classify_usage, display_usage, progress, status_label
from ..core.date_ranges import month_bounds
from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from .budgets import find_budget
from .expenses import query_expenses
from .incomes import find_income


router = APIRouter(
    prefix="/overview",
    tags=["overview"],
)


class OverviewRead(SQLModel):
    month: int
    year: int
    budget_id: Optional[uuid.UUID] = None
    income_id: Optional[uuid.UUID] = None
    monthly_income: float
    budget_limit: float
    total_expenses: float
    remaining: float
    usage_percent: Optional[float] = None
    progress: float
    status: str
    status_label: str


@router.get(
    "",
    response_model=OverviewRead,
    status_code=status.HTTP_200_OK,
)
def get_overview(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1900, le=9999),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Income, budget and spending of one month (the current one by default)."""
    today = date.today()
    month = month or today.month
    year = year or today.year

    budget = find_budget(session, current_user.id, month, year)
    income = find_income(session, current_user.id, month, year)

    bounds = month_bounds(year, month)
    expenses = query_expenses(session, current_user.id, start=bounds.start, end=bounds.end)
    total = total_spent(expenses)

    limit = budget.limit_amount if budget else 0.0
    usage = budget_usage(total, limit)
    state = classify_usage(usage)
    return OverviewRead(
        month=month,
        year=year,
        budget_id=budget.id if budget else None,
        income_id=income.id if income else None,
        monthly_income=income.amount if income else 0.0,
        budget_limit=limit,
        total_expenses=round(total, 2),
        remaining=round(limit - total, 2),
        usage_percent=display_usage(usage),
        progress=progress(usage),
        status=state,
        status_label=status_label(state),
    )
