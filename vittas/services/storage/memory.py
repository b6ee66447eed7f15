"""
In-Memory Storage

Process-local implementations of the storage interfaces. Used by the test
suite and for running the API without a Supabase project.

All writes for one store go through a single asyncio.Lock, so the
subscriber/profile pair is always replaced together.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import UUID, uuid4

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
from vittas.services.storage.interface import (
    FinanceStorageInterface,
    NotFoundError,
    SharedExpenseStorageInterface,
    SubscriptionStorageInterface,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryFinanceStorage(FinanceStorageInterface):
    """Transactions and budgets kept in dicts keyed by id."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = asyncio.Lock()
        self._transactions: dict[UUID, Transaction] = {}
        self._budgets: dict[UUID, Budget] = {}

    def add_transaction(self, transaction: Transaction) -> None:
        """Seed a fully-formed transaction (test helper)."""
        self._transactions[transaction.id] = transaction

    def add_budget(self, budget: Budget) -> None:
        """Seed a fully-formed budget (test helper)."""
        self._budgets[budget.id] = budget

    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        rows = [
            t for t in self._transactions.values()
            if t.user_id == user_id
            and (date_from is None or t.date >= date_from)
            and (date_to is None or t.date <= date_to)
        ]
        return sorted(rows, key=lambda t: t.date, reverse=True)

    async def get_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        if transaction is None or transaction.user_id != user_id:
            return None
        return transaction

    async def create_transaction(
        self,
        user_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        now = self._clock()
        transaction = Transaction(
            id=uuid4(),
            user_id=user_id,
            title=draft.title,
            amount=draft.amount,
            type=draft.type,
            category=draft.category,
            date=draft.date,
            description=draft.description,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._transactions[transaction.id] = transaction
        return transaction

    async def update_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        async with self._lock:
            existing = await self.get_transaction(user_id, transaction_id)
            if existing is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")
            updated = existing.model_copy(update={
                "title": draft.title,
                "amount": draft.amount,
                "type": draft.type,
                "category": draft.category,
                "date": draft.date,
                "description": draft.description,
                "updated_at": self._clock(),
            })
            self._transactions[transaction_id] = updated
        return updated

    async def delete_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> bool:
        async with self._lock:
            if await self.get_transaction(user_id, transaction_id) is None:
                return False
            del self._transactions[transaction_id]
        return True

    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        rows = [b for b in self._budgets.values() if b.user_id == user_id]
        return sorted(
            rows,
            key=lambda b: b.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    async def create_budget(
        self,
        user_id: UUID,
        draft: BudgetDraft,
    ) -> Budget:
        now = self._clock()
        budget = Budget(
            id=uuid4(),
            user_id=user_id,
            name=draft.name,
            amount=draft.amount,
            category=draft.category,
            period=draft.period,
            start_date=draft.start_date,
            end_date=draft.end_date,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._budgets[budget.id] = budget
        return budget


class InMemorySubscriptionStorage(SubscriptionStorageInterface):
    """Subscriber rows and profiles kept in dicts keyed by user id."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = asyncio.Lock()
        self.subscribers: dict[UUID, SubscriberRecord] = {}
        self.profiles: dict[UUID, Profile] = {}

    def add_profile(self, profile: Profile) -> None:
        self.profiles[profile.id] = profile

    async def get_subscriber(self, user_id: UUID) -> Optional[SubscriberRecord]:
        return self.subscribers.get(user_id)

    async def get_profile(self, user_id: UUID) -> Optional[Profile]:
        return self.profiles.get(user_id)

    async def apply_subscription_state(
        self,
        user_id: UUID,
        state: SubscriptionState,
    ) -> None:
        async with self._lock:
            previous = self.subscribers.get(user_id)
            # Cancelling only updates an existing row
            if previous is not None or state.subscribed:
                self.subscribers[user_id] = SubscriberRecord(
                    user_id=user_id,
                    email=state.email or (previous.email if previous else None),
                    subscribed=state.subscribed,
                    subscription_tier=state.subscription_tier,
                    subscription_end=state.subscription_end,
                    updated_at=self._clock(),
                )

            profile = self.profiles.get(user_id)
            if profile is not None:
                self.profiles[user_id] = profile.model_copy(
                    update={"subscription_tier": state.profile_tier},
                )


class InMemorySharedExpenseStorage(SharedExpenseStorageInterface):
    """Shared expenses kept in a dict keyed by expense id."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = asyncio.Lock()
        self._expenses: dict[UUID, SharedExpense] = {}

    async def create_shared_expense(
        self,
        draft: SharedExpenseDraft,
        shares: list[ExpenseShare],
    ) -> SharedExpense:
        expense = SharedExpense(
            id=uuid4(),
            title=draft.title,
            description=draft.description,
            total_amount=draft.total_amount,
            group_id=draft.group_id,
            created_by=draft.created_by,
            created_at=self._clock(),
            shares=list(shares),
        )
        async with self._lock:
            self._expenses[expense.id] = expense
        return expense

    async def list_shared_expenses(self, group_id: UUID) -> list[SharedExpense]:
        rows = [e for e in self._expenses.values() if e.group_id == group_id]
        return sorted(rows, key=lambda e: e.created_at, reverse=True)

    async def delete_shared_expense(self, expense_id: UUID) -> bool:
        async with self._lock:
            return self._expenses.pop(expense_id, None) is not None
