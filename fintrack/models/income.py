import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from ..core.clock import utcnow


class Income(SQLModel, table=True):
    __tablename__ = "incomes"
    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="uq_incomes_user_period"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    month: int = Field(ge=1, le=12)
    year: int

    amount: float = Field(ge=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
