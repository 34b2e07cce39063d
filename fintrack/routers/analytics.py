from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session, SQLModel

from ..config import settings
from ..core.aggregation import summarize
from ..core.categories import category_color, category_icon
from ..core.date_ranges import range_label, resolve_range
from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from .expenses import query_expenses


router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
)


class CategoryTotalRead(SQLModel):
    name: str
    value: float
    icon: str
    color: str


class DailyTotalRead(SQLModel):
    name: str
    amount: float


class AnalyticsRead(SQLModel):
    range: str
    label: str
    start: date
    end: date
    total_spent: float
    average_per_day: float
    top_category: CategoryTotalRead
    category_totals: List[CategoryTotalRead]
    daily_totals: List[DailyTotalRead]


def _category_read(name: str, value: float) -> CategoryTotalRead:
    return CategoryTotalRead(
        name=name,
        value=round(value, 2),
        icon=category_icon(name),
        color=category_color(name),
    )


@router.get(
    "",
    response_model=AnalyticsRead,
    status_code=status.HTTP_200_OK,
)
def get_analytics(
    range_token: str = Query(default="month", alias="range"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    bounds = resolve_range(range_token, week_start=settings.week_starts_on)
    expenses = query_expenses(
        session,
        current_user.id,
        start=bounds.start,
        end=bounds.end,
        ascending=True,
    )
    summary = summarize(expenses, user_id=current_user.id)

    return AnalyticsRead(
        range=range_token,
        label=range_label(range_token),
        start=bounds.start,
        end=bounds.end,
        total_spent=round(summary.total_spent, 2),
        average_per_day=round(summary.average_per_day, 2),
        top_category=_category_read(summary.top_category.name, summary.top_category.value),
        category_totals=[_category_read(c.name, c.value) for c in summary.category_totals],
        daily_totals=[DailyTotalRead(name=d.name, amount=round(d.amount, 2)) for d in summary.daily_totals],
    )
