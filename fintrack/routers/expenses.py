import logging
import uuid
from datetime import datetime, date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import field_validator
from sqlmodel import SQLModel, Field, Session, select

from ..core.clock import utcnow
from ..database import commit_with_retry, get_session
from ..models.expense import Expense
from ..models.user import User
from ..core.categories import normalize_category
from ..core.security import get_current_user


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/expenses",
    tags=["expenses"],
)

# ─────────────────────────────
#   SCHEMAS
# ─────────────────────────────

class ExpenseBase(SQLModel):
    amount: float = Field(ge=0)
    category: str = Field(default="other", max_length=50)
    description: str = Field(default="", max_length=255)
    expense_date: Optional[date] = None

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return normalize_category(value)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(SQLModel):
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    expense_date: Optional[date] = None

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else normalize_category(value)


class ExpenseRead(ExpenseBase):
    id: uuid.UUID
    user_id: uuid.UUID
    expense_date: date
    created_at: datetime
    updated_at: datetime


# ─────────────────────────────
#   QUERIES
# ─────────────────────────────

def query_expenses(
    session: Session,
    user_id: uuid.UUID,
    on: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    ascending: bool = False,
) -> List[Expense]:
    """Live expenses of one user, optionally for one day or an inclusive range."""
    stmt = select(Expense).where(Expense.user_id == user_id, Expense.deleted_at.is_(None))
    if on is not None:
        stmt = stmt.where(Expense.expense_date == on)
    if start is not None:
        stmt = stmt.where(Expense.expense_date >= start)
    if end is not None:
        stmt = stmt.where(Expense.expense_date <= end)
    if ascending:
        stmt = stmt.order_by(Expense.expense_date.asc(), Expense.created_at.asc())
    else:
        stmt = stmt.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
    return list(session.exec(stmt).all())


def _get_owned(session: Session, expense_id: uuid.UUID, user: User) -> Expense:
    expense = session.get(Expense, expense_id)
    if not expense or expense.deleted_at is not None or expense.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found",
        )
    return expense


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    expense_in: ExpenseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Record a new expense for the authenticated user.

    The owner always comes from the token, never from the payload.
    """
    now = utcnow()

    expense = Expense(
        id=uuid.uuid4(),
        user_id=current_user.id,
        amount=expense_in.amount,
        category=expense_in.category,
        description=expense_in.description,
        expense_date=expense_in.expense_date or date.today(),
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )

    commit_with_retry(session, expense)
    session.refresh(expense)
    logger.debug("Created expense %s for user %s", expense.id, current_user.id)
    return expense


@router.get(
    "",
    response_model=List[ExpenseRead],
)
def list_expenses(
    expense_date: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    order: str = Query(default="desc", pattern="^(asc|desc)$"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    List the authenticated user's expenses.

    - Soft-deleted rows are always excluded.
    - ``expense_date`` filters one day; ``start``/``end`` are inclusive.
    - Ordered by expense date, then creation time.
    """
    if start and end and start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end")
    return query_expenses(
        session,
        current_user.id,
        on=expense_date,
        start=start,
        end=end,
        ascending=order == "asc",
    )


@router.get(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def get_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _get_owned(session, expense_id, current_user)


@router.patch(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def update_expense(
    expense_id: uuid.UUID,
    expense_in: ExpenseUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Partially update one of the authenticated user's expenses."""
    expense = _get_owned(session, expense_id, current_user)

    changes = expense_in.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    for key, value in changes.items():
        setattr(expense, key, value)
    expense.updated_at = utcnow()
    commit_with_retry(session, expense)
    session.refresh(expense)
    return expense


@router.delete(
    "/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Soft delete: the row stays, marked with deleted_at."""
    expense = _get_owned(session, expense_id, current_user)

    now = utcnow()
    expense.deleted_at = now
    expense.updated_at = now
    commit_with_retry(session, expense)
    logger.debug("Deleted expense %s for user %s", expense_id, current_user.id)
    return None
