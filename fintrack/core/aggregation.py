"""Aggregations over a list of expenses already filtered to one user and range.

Every function keeps first-seen order; nothing is sorted and no zero
entries are synthesised.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Union


MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class MixedOwnershipError(ValueError):
    """Raised when expenses of more than one user reach the pipeline."""


@dataclass
class CategoryTotal:
    name: str
    value: float


@dataclass
class DailyTotal:
    name: str
    amount: float


@dataclass
class SpendingSummary:
    total_spent: float = 0.0
    average_per_day: float = 0.0
    top_category: CategoryTotal = field(default_factory=lambda: CategoryTotal("", 0.0))
    category_totals: List[CategoryTotal] = field(default_factory=list)
    daily_totals: List[DailyTotal] = field(default_factory=list)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _as_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def day_label(value: Union[date, datetime, str]) -> str:
    # No year component: the same month/day in different years share a bucket.
    d = _as_date(value)
    return f"{MONTH_ABBR[d.month - 1]} {d.day:02d}"


def category_totals(expenses: Iterable[Any]) -> List[CategoryTotal]:
    totals: List[CategoryTotal] = []
    index = {}
    for expense in expenses:
        name = _field(expense, "category")
        amount = float(_field(expense, "amount") or 0)
        if name in index:
            totals[index[name]].value += amount
        else:
            index[name] = len(totals)
            totals.append(CategoryTotal(name=name, value=amount))
    return totals


def daily_totals(expenses: Iterable[Any]) -> List[DailyTotal]:
    totals: List[DailyTotal] = []
    index = {}
    for expense in expenses:
        label = day_label(_field(expense, "expense_date"))
        amount = float(_field(expense, "amount") or 0)
        if label in index:
            totals[index[label]].amount += amount
        else:
            index[label] = len(totals)
            totals.append(DailyTotal(name=label, amount=amount))
    return totals


def total_spent(expenses: Iterable[Any]) -> float:
    return sum((float(_field(e, "amount") or 0) for e in expenses), 0.0)


def average_per_day(total: float, days: Sequence[DailyTotal]) -> float:
    if not days:
        return 0.0
    return total / len(days)


def top_category(categories: Iterable[CategoryTotal]) -> CategoryTotal:
    top = CategoryTotal(name="", value=0.0)
    for cat in categories:
        if cat.value > top.value:
            top = cat
    return top


def ensure_single_owner(expenses: Iterable[Any], user_id: uuid.UUID) -> None:
    for expense in expenses:
        owner = _field(expense, "user_id")
        if owner is not None and str(owner) != str(user_id):
            raise MixedOwnershipError(
                f"expense {_field(expense, 'id')} belongs to {owner}, not {user_id}"
            )


def summarize(expenses: Sequence[Any], user_id: Optional[uuid.UUID] = None) -> SpendingSummary:
    if user_id is not None:
        ensure_single_owner(expenses, user_id)

    by_category = category_totals(expenses)
    by_day = daily_totals(expenses)
    total = total_spent(expenses)
    return SpendingSummary(
        total_spent=total,
        average_per_day=average_per_day(total, by_day),
        top_category=top_category(by_category),
        category_totals=by_category,
        daily_totals=by_day,
    )
