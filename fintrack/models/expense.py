import uuid
from datetime import datetime, date
from typing import Optional
from sqlmodel import SQLModel, Field

from ..core.clock import utcnow


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True
    )

    amount: float = Field(ge=0)
    category: str = Field(default="other", max_length=50)
    description: str = Field(default="")
    expense_date: date = Field(default_factory=date.today, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: Optional[datetime] = Field(default=None)
