"""
Core Finance Models for Vittas

These models define the strict schemas for transactions, budgets and the
derived dashboard figures. Every row read from the database is parsed into
one of these before any code touches it.

DESIGN DECISION: We use Pydantic v2 models with exhaustive field lists.
A row with a missing or mistyped column fails loudly at the storage
boundary instead of surfacing later as a wrong total.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, Enum):
    """
    Categories offered by the transaction and budget forms.

    Stored categories are free text; these are the suggested values.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    HEALTHCARE = "healthcare"
    SHOPPING = "shopping"
    EDUCATION = "education"
    INVESTMENT = "investment"
    SALARY = "salary"
    FREELANCE = "freelance"
    BUSINESS = "business"
    OTHER = "other"


class TimePeriod(str, Enum):
    """Reporting period the dashboard is computed for."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry owned by exactly one user.

    Immutable once created except through an explicit edit.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    user_id: UUID
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in the user's currency"
    )
    type: TransactionType
    category: str = Field(
        ...,
        description="Free-text category"
    )
    date: date
    description: str = ""
    organization_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('description', mode='before')
    @classmethod
    def none_description_is_empty(cls, v):
        return "" if v is None else v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


class TransactionDraft(BaseModel):
    """User input for creating or editing a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short label for the transaction"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount must be greater than 0"
    )
    type: TransactionType
    category: str = Field(
        default=TransactionCategory.OTHER.value,
        min_length=1,
        max_length=50,
    )
    date: date
    description: str = Field(
        default="",
        max_length=1000,
    )

    def to_row(self) -> dict:
        """Columns written to the transactions table."""
        return {
            "title": self.title,
            "amount": str(self.amount),
            "type": self.type.value,
            "category": self.category,
            "date": self.date.isoformat(),
            "description": self.description,
        }


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(BaseModel):
    """
    A spending budget owned by one user.

    Budgets are independent of transactions; nothing here rolls
    transactions up into a budget.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    category: str
    period: Optional[str] = Field(
        default=None,
        description="Free-text period label (e.g. 'monthly')"
    )
    start_date: date
    end_date: date
    organization_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BudgetDraft(BaseModel):
    """User input for creating a budget."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount must be positive"
    )
    category: str = Field(
        default=TransactionCategory.OTHER.value,
        min_length=1,
        max_length=50,
    )
    period: Optional[str] = Field(default="monthly", max_length=50)
    start_date: date
    end_date: date

    @model_validator(mode='after')
    def validate_dates(self) -> 'BudgetDraft':
        if self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "amount": str(self.amount),
            "category": self.category,
            "period": self.period,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


# =============================================================================
# DASHBOARD (derived, never persisted)
# =============================================================================

class DateWindow(BaseModel):
    """Inclusive date range used to filter transactions."""

    start: date
    end: date

    @model_validator(mode='after')
    def validate_order(self) -> 'DateWindow':
        if self.end < self.start:
            raise ValueError("Window end cannot be before start")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class DashboardStats(BaseModel):
    """
    Summary totals for one query window.

    Serialized with the camelCase names the views expect
    (totalIncome, totalExpense, balance, transactionCount).
    """
    model_config = ConfigDict(populate_by_name=True)

    total_income: Decimal = Field(default=Decimal("0"), alias="totalIncome")
    total_expense: Decimal = Field(default=Decimal("0"), alias="totalExpense")
    balance: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0, alias="transactionCount")

    @classmethod
    def from_transactions(cls, transactions: list[Transaction]) -> 'DashboardStats':
        total_income = sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        total_expense = sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        return cls(
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
            transaction_count=len(transactions),
        )


class DashboardData(BaseModel):
    """Everything the dashboard renders for one user and period."""

    period: TimePeriod
    window: DateWindow
    stats: DashboardStats
    recent_transactions: list[Transaction] = Field(default_factory=list)
    all_transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
