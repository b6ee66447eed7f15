"""Models for expenses shared inside a group."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SplitType(str, Enum):
    """How a shared expense is divided between participants."""
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class ExpenseShare(BaseModel):
    """What one participant owes for a shared expense."""

    user_id: UUID
    amount_owed: Decimal = Field(..., ge=0)
    paid: bool = False

    @field_validator('paid', mode='before')
    @classmethod
    def none_paid_is_unpaid(cls, v):
        return False if v is None else v


class SharedExpenseDraft(BaseModel):
    """User input for a new shared expense."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    total_amount: Decimal = Field(..., gt=0, decimal_places=2)
    group_id: UUID
    created_by: UUID

    def to_row(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "total_amount": str(self.total_amount),
            "group_id": str(self.group_id),
            "created_by": str(self.created_by),
        }


class SharedExpense(BaseModel):
    """A stored shared expense with its participant shares."""

    id: UUID
    title: str
    description: Optional[str] = None
    total_amount: Decimal
    group_id: UUID
    created_by: UUID
    created_at: Optional[datetime] = None
    shares: list[ExpenseShare] = Field(default_factory=list)

    @property
    def outstanding(self) -> Decimal:
        """Total still owed by participants who have not paid."""
        return sum(
            (s.amount_owed for s in self.shares if not s.paid),
            Decimal("0"),
        )
