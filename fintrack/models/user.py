import uuid
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..core.clock import utcnow


class User(SQLModel, table=True):
    """An account; expenses, budgets and incomes all hang off its id."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    # stored lower-cased, see normalize_email
    email: str = Field(index=True, unique=True)
    hashed_password: str
    display_name: Optional[str] = Field(default=None, max_length=100)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: Optional[datetime] = Field(default=None)

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None
