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
from ..models.income import Income
from ..models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/incomes",
    tags=["incomes"],
)


class IncomeBase(SQLModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    amount: float = Field(ge=0)


class IncomeCreate(IncomeBase):
    pass


class IncomeUpdate(SQLModel):
    amount: float = Field(ge=0)


class IncomeRead(IncomeBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


def find_income(session: Session, user_id: uuid.UUID, month: int, year: int) -> Optional[Income]:
    return session.exec(
        select(Income).where(
            Income.user_id == user_id,
            Income.month == month,
            Income.year == year,
        )
    ).first()


def _get_owned(session: Session, income_id: uuid.UUID, user: User) -> Income:
    income = session.get(Income, income_id)
    if not income or income.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Income not found")
    return income


@router.get(
    "",
    response_model=List[IncomeRead],
    status_code=status.HTTP_200_OK,
)
def list_incomes(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1900, le=9999),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Income).where(Income.user_id == current_user.id)
    if month is not None:
        stmt = stmt.where(Income.month == month)
    if year is not None:
        stmt = stmt.where(Income.year == year)
    stmt = stmt.order_by(Income.year.desc(), Income.month.desc())
    return list(session.exec(stmt).all())


@router.post(
    "",
    response_model=IncomeRead,
    status_code=status.HTTP_201_CREATED,
)
def create_income(
    payload: IncomeCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    now = utcnow()
    income = Income(
        id=uuid.uuid4(),
        user_id=current_user.id,
        month=payload.month,
        year=payload.year,
        amount=payload.amount,
        created_at=now,
        updated_at=now,
    )
    try:
        commit_with_retry(session, income)
    except IntegrityError:
        session.rollback()
        logger.info("Income for %s/%s already exists for user %s", payload.month, payload.year, current_user.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Income already set for this period",
        )
    session.refresh(income)
    return income


@router.patch(
    "/{income_id}",
    response_model=IncomeRead,
    status_code=status.HTTP_200_OK,
)
def update_income(
    income_id: uuid.UUID,
    payload: IncomeUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    income = _get_owned(session, income_id, current_user)
    income.amount = payload.amount
    income.updated_at = utcnow()
    commit_with_retry(session, income)
    session.refresh(income)
    return income


@router.delete(
    "/{income_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_income(
    income_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    income = _get_owned(session, income_id, current_user)
    session.delete(income)
    commit_with_retry(session)
    return None
