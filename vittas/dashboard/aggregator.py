"""
Dashboard Aggregator

Computes the summary figures, recent activity and budget list a user sees
for a reporting period.

Flow:
1. Resolve the period to an inclusive date window ending today
2. Fetch the user's transactions inside the window (newest first)
3. Fetch all of the user's budgets (newest created first)
4. Derive totals from the fetched rows

Nothing is cached: every call goes back to storage.
"""

from datetime import date, timedelta
from typing import Callable, Optional, Union
from uuid import UUID

from vittas.audit import AuditLogger, create_correlation_id
from vittas.config import get_settings
from vittas.errors import DependencyError, ValidationError, VittasError
from vittas.models.finance import (
    Budget,
    BudgetDraft,
    DashboardData,
    DashboardStats,
    DateWindow,
    TimePeriod,
    Transaction,
    TransactionDraft,
)
from vittas.services.storage.interface import FinanceStorageInterface, NotFoundError


def get_date_window(period: Union[TimePeriod, str], today: date) -> DateWindow:
    """
    Resolve a reporting period to the window ``[start, today]``.

    Weeks start on Sunday. Quarters start in January, April, July
    and October.
    """
    period = TimePeriod(period)

    if period == TimePeriod.DAY:
        start = today
    elif period == TimePeriod.WEEK:
        # date.weekday() is 0 for Monday, 6 for Sunday
        start = today - timedelta(days=(today.weekday() + 1) % 7)
    elif period == TimePeriod.MONTH:
        start = today.replace(day=1)
    elif period == TimePeriod.QUARTER:
        start = date(today.year, ((today.month - 1) // 3) * 3 + 1, 1)
    else:
        start = date(today.year, 1, 1)

    return DateWindow(start=start, end=today)


def compute_stats(transactions: list[Transaction]) -> DashboardStats:
    """Totals for a list of transactions; balance is income minus expense."""
    return DashboardStats.from_transactions(transactions)


class DashboardAggregator:
    """
    Builds DashboardData for one user and period.

    Usage:
        aggregator = DashboardAggregator(storage)
        data = await aggregator.get_dashboard_data(user_id, "month")
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
        recent_limit: Optional[int] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._clock = clock
        if recent_limit is None:
            recent_limit = get_settings().app.recent_transactions_limit
        self._recent_limit = recent_limit

    async def get_dashboard_data(
        self,
        user_id: UUID,
        period: Union[TimePeriod, str] = TimePeriod.MONTH,
    ) -> DashboardData:
        """
        Load everything the dashboard shows for ``period``.

        Raises:
            ValidationError: If the period is not recognised
            DependencyError: If either query fails (nothing is returned)
        """
        try:
            period = TimePeriod(period)
        except ValueError:
            raise ValidationError(f"Invalid period: {period}")

        correlation_id = create_correlation_id()
        window = get_date_window(period, self._clock())

        try:
            transactions = await self._storage.list_transactions(
                user_id,
                date_from=window.start,
                date_to=window.end,
            )
            budgets = await self._storage.list_budgets(user_id)
        except DependencyError as e:
            await self._audit.log_dashboard_failed(
                user_id=user_id,
                period=period.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        data = DashboardData(
            period=period,
            window=window,
            stats=compute_stats(transactions),
            recent_transactions=transactions[:self._recent_limit],
            all_transactions=transactions,
            budgets=budgets,
        )

        await self._audit.log_dashboard_loaded(
            user_id=user_id,
            period=period.value,
            transaction_count=len(transactions),
            budget_count=len(budgets),
            correlation_id=correlation_id,
        )
        return data

    async def create_transaction(
        self,
        user_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        transaction = await self._storage.create_transaction(user_id, draft)
        await self._audit.log_transaction_saved(user_id, transaction.id)
        return transaction

    async def update_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        """
        Edit one of the user's transactions.

        Raises:
            NotFoundError: If the transaction is missing or owned by someone else
        """
        transaction = await self._storage.update_transaction(user_id, transaction_id, draft)
        await self._audit.log_transaction_updated(user_id, transaction_id)
        return transaction

    async def delete_transaction(self, user_id: UUID, transaction_id: UUID) -> None:
        deleted = await self._storage.delete_transaction(user_id, transaction_id)
        if not deleted:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        await self._audit.log_transaction_deleted(user_id, transaction_id)

    async def create_budget(self, user_id: UUID, draft: BudgetDraft) -> Budget:
        budget = await self._storage.create_budget(user_id, draft)
        await self._audit.log_budget_saved(user_id, budget.id, budget.name)
        return budget


class DashboardState:
    """
    What the dashboard view currently displays.

    A refresh either replaces every value or none of them. On failure the
    previous figures stay on screen and one notification is queued.
    """

    FAILURE_MESSAGE = "Failed to load dashboard data"

    def __init__(self, aggregator: DashboardAggregator):
        self._aggregator = aggregator
        self.period: TimePeriod = TimePeriod.MONTH
        self.stats = DashboardStats()
        self.recent_transactions: list[Transaction] = []
        self.all_transactions: list[Transaction] = []
        self.budgets: list[Budget] = []
        self.loading = False
        self.notifications: list[str] = []

    async def refresh(
        self,
        user_id: Optional[UUID],
        period: Union[TimePeriod, str, None] = None,
    ) -> bool:
        """
        Reload the dashboard. Returns True if new values were applied.

        Without a signed-in user nothing is fetched and nothing changes.
        """
        if user_id is None:
            return False

        target = period or self.period
        self.loading = True
        try:
            data = await self._aggregator.get_dashboard_data(user_id, target)
        except VittasError:
            self.notifications.append(self.FAILURE_MESSAGE)
            return False
        finally:
            self.loading = False

        self.period = data.period
        self.stats = data.stats
        self.recent_transactions = data.recent_transactions
        self.all_transactions = data.all_transactions
        self.budgets = data.budgets
        return True

    def pop_notifications(self) -> list[str]:
        """Return and clear queued notifications."""
        pending, self.notifications = self.notifications, []
        return pending
