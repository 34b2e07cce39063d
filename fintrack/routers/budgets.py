import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Field, Session, SQLModel, select

from ..core.security import get_current_user
from ..core.clock import utcnow
from ..database import commit_with_retry, get_session
from ..models.budget import Budget
from ..models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)


class BudgetBase(SQLModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    limit_amount: float = Field(ge=0)


class BudgetCreate(BudgetBase):
    pass


class BudgetUpdate(SQLModel):
    limit_amount: float = Field(ge=0)


class BudgetRead(BudgetBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


def find_budget(session: Session, user_id: uuid.UUID, month: int, year: int) -> Optional[Budget]:
    return session.exec(
        select(Budget).where(
            Budget.user_id == user_id,
            Budget.month == month,
            Budget.year == year,
        )
    ).first()


def _get_owned(session: Session, budget_id: uuid.UUID, user: User) -> Budget:
    b = session.get(Budget, budget_id)
    if not b or b.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return b


@router.get(
    "",
    response_model=List[BudgetRead],
    status_code=status.HTTP_200_OK,
)
def list_budgets(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1900, le=9999),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Budget).where(Budget.user_id == current_user.id)
    if month is not None:
        stmt = stmt.where(Budget.month == month)
    if year is not None:
        stmt = stmt.where(Budget.year == year)
    stmt = stmt.order_by(Budget.year.desc(), Budget.month.desc())
    return list(session.exec(stmt).all())


@router.post(
    "",
    response_model=BudgetRead,
    status_code=status.HTTP_201_CREATED,
)
def create_budget(
    payload: BudgetCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Insert the budget of a period; a period holds at most one budget."""
    now = utcnow()
    b = Budget(
        id=uuid.uuid4(),
        user_id=current_user.id,
        month=payload.month,
        year=payload.year,
        limit_amount=payload.limit_amount,
        created_at=now,
        updated_at=now,
    )
    try:
        commit_with_retry(session, b)
    except IntegrityError:
        session.rollback()
        logger.info("Budget for %s/%s already exists for user %s", payload.month, payload.year, current_user.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Budget already set for this period",
        )
    session.refresh(b)
    return b


@router.patch(
    "/{budget_id}",
    response_model=BudgetRead,
    status_code=status.HTTP_200_OK,
)
def update_budget(
    budget_id: uuid.UUID,
    payload: BudgetUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = _get_owned(session, budget_id, current_user)
    b.limit_amount = payload.limit_amount
    b.updated_at = utcnow()
    commit_with_retry(session, b)
    session.refresh(b)
    return b


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_budget(
    budget_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = _get_owned(session, budget_id, current_user)
    session.delete(b)
    commit_with_retry(session)
    return None
