"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against Supabase (PostgREST) in production
2. Use in-memory storage for testing and local runs
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the dashboard, subscription and sharing flows need.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from vittas.errors import DependencyError
from vittas.models.finance import (
    Budget,
    BudgetDraft,
    Transaction,
    TransactionDraft,
)
from vittas.models.sharing import ExpenseShare, SharedExpense, SharedExpenseDraft
from vittas.models.subscription import (
    Profile,
    SubscriberRecord,
    SubscriptionState,
)


class FinanceStorageInterface(ABC):
    """
    Abstract interface for transaction and budget storage.

    Every operation is scoped to the owning user.
    """

    @abstractmethod
    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        List a user's transactions, newest date first.

        Args:
            user_id: Owner of the transactions
            date_from: Only transactions on or after this date
            date_to: Only transactions on or before this date

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        """Return the transaction if it exists and belongs to the user."""
        pass

    @abstractmethod
    async def create_transaction(
        self,
        user_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        """Insert a transaction and return the stored row."""
        pass

    @abstractmethod
    async def update_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        """
        Replace the editable fields of a transaction.

        Raises:
            NotFoundError: If the transaction does not exist for this user
        """
        pass

    @abstractmethod
    async def delete_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> bool:
        """Delete a transaction. Returns False if nothing was deleted."""
        pass

    @abstractmethod
    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        """List all of a user's budgets, newest created first."""
        pass

    @abstractmethod
    async def create_budget(
        self,
        user_id: UUID,
        draft: BudgetDraft,
    ) -> Budget:
        """Insert a budget and return the stored row."""
        pass


class SubscriptionStorageInterface(ABC):
    """
    Abstract interface for the Subscriber + Profile pair.

    CRITICAL: apply_subscription_state writes both records in ONE
    transaction. Implementations must not expose a state where one
    record was written and the other was not.
    """

    @abstractmethod
    async def get_subscriber(self, user_id: UUID) -> Optional[SubscriberRecord]:
        """Return the subscriber row, or None if the user never subscribed."""
        pass

    @abstractmethod
    async def get_profile(self, user_id: UUID) -> Optional[Profile]:
        """Return the user's profile, or None if it does not exist."""
        pass

    @abstractmethod
    async def apply_subscription_state(
        self,
        user_id: UUID,
        state: SubscriptionState,
    ) -> None:
        """
        Write the subscriber row and the profile tier atomically.

        An active state upserts the subscriber row. A cancelled state only
        updates an existing row. The profile is updated, never created.

        Raises:
            StorageError: If the write fails (nothing was written)
        """
        pass


class SharedExpenseStorageInterface(ABC):
    """Abstract interface for shared group expenses."""

    @abstractmethod
    async def create_shared_expense(
        self,
        draft: SharedExpenseDraft,
        shares: list[ExpenseShare],
    ) -> SharedExpense:
        """Store an expense together with its participant shares."""
        pass

    @abstractmethod
    async def list_shared_expenses(self, group_id: UUID) -> list[SharedExpense]:
        """List a group's expenses, newest first."""
        pass

    @abstractmethod
    async def delete_shared_expense(self, expense_id: UUID) -> bool:
        pass


class StorageError(DependencyError):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
