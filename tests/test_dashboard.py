"""Tests for the dashboard aggregator and the dashboard view state."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from conftest import TODAY, make_budget, make_transaction
from vittas.dashboard import DashboardAggregator, DashboardState, get_date_window
from vittas.errors import DependencyError, ValidationError
from vittas.models.finance import TimePeriod, TransactionDraft, TransactionType
from vittas.services.storage import NotFoundError, StorageError


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


@pytest.fixture
def aggregator(finance_storage) -> DashboardAggregator:
    return DashboardAggregator(finance_storage, clock=lambda: TODAY, recent_limit=4)


class TestDateWindows:
    """Period to window resolution."""

    @pytest.mark.parametrize("period", list(TimePeriod))
    def test_window_ends_today_and_is_ordered(self, period):
        window = get_date_window(period, TODAY)
        assert window.end == TODAY
        assert window.start <= window.end

    def test_day_window_is_only_today(self):
        window = get_date_window("day", TODAY)
        assert window.start == window.end == TODAY

    def test_week_starts_on_sunday(self):
        # 2024-05-15 is a Wednesday
        assert get_date_window("week", TODAY).start == date(2024, 5, 12)

    def test_week_on_a_sunday_starts_that_day(self):
        sunday = date(2024, 5, 12)
        assert get_date_window("week", sunday).start == sunday

    def test_week_on_a_saturday(self):
        assert get_date_window("week", date(2024, 5, 18)).start == date(2024, 5, 12)

    def test_month_starts_on_the_first(self):
        assert get_date_window("month", TODAY).start == date(2024, 5, 1)

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2024, 1, 10), date(2024, 1, 1)),
            (date(2024, 3, 31), date(2024, 1, 1)),
            (date(2024, 5, 15), date(2024, 4, 1)),
            (date(2024, 9, 30), date(2024, 7, 1)),
            (date(2024, 12, 31), date(2024, 10, 1)),
        ],
    )
    def test_quarter_start(self, today, expected):
        assert get_date_window("quarter", today).start == expected

    def test_year_starts_january_first(self):
        assert get_date_window("year", TODAY).start == date(2024, 1, 1)

    def test_unknown_period_rejected(self):
        with pytest.raises(ValueError):
            get_date_window("fortnight", TODAY)


class TestDashboardAggregator:
    """Aggregation over the in-memory storage."""

    async def test_income_and_expense_today(self, aggregator, finance_storage, user):
        """Income 100 and expense 40 today give 100 / 40 / 60 / 2."""
        finance_storage.add_transaction(make_transaction(user.id, "100", INCOME, TODAY))
        finance_storage.add_transaction(make_transaction(user.id, "40", EXPENSE, TODAY))

        data = await aggregator.get_dashboard_data(user.id, "day")

        assert data.stats.total_income == Decimal("100")
        assert data.stats.total_expense == Decimal("40")
        assert data.stats.balance == Decimal("60")
        assert data.stats.transaction_count == 2

    async def test_only_transactions_inside_window(self, aggregator, finance_storage, user):
        finance_storage.add_transaction(make_transaction(user.id, "10", EXPENSE, TODAY))
        finance_storage.add_transaction(make_transaction(user.id, "20", EXPENSE, date(2024, 4, 30)))
        finance_storage.add_transaction(make_transaction(user.id, "30", EXPENSE, TODAY + timedelta(days=1)))

        data = await aggregator.get_dashboard_data(user.id, "month")

        assert [t.amount for t in data.all_transactions] == [Decimal("10")]

    async def test_other_users_transactions_excluded(self, aggregator, finance_storage, user):
        finance_storage.add_transaction(make_transaction(uuid4(), "999", INCOME, TODAY))

        data = await aggregator.get_dashboard_data(user.id, "year")

        assert data.stats.transaction_count == 0
        assert data.stats.balance == Decimal("0")

    async def test_recent_is_prefix_of_date_descending_list(self, aggregator, finance_storage, user):
        for day in range(1, 8):
            finance_storage.add_transaction(
                make_transaction(user.id, str(day), EXPENSE, date(2024, 5, day))
            )

        data = await aggregator.get_dashboard_data(user.id, "month")

        dates = [t.date for t in data.all_transactions]
        assert dates == sorted(dates, reverse=True)
        assert len(data.recent_transactions) == 4
        assert data.recent_transactions == data.all_transactions[:4]

    async def test_zero_recent_limit_shows_no_recent(self, finance_storage, user):
        finance_storage.add_transaction(make_transaction(user.id, "10", EXPENSE, TODAY))
        aggregator = DashboardAggregator(finance_storage, clock=lambda: TODAY, recent_limit=0)

        data = await aggregator.get_dashboard_data(user.id, "day")

        assert data.recent_transactions == []
        assert len(data.all_transactions) == 1

    async def test_stats_invariants(self, aggregator, finance_storage, user):
        amounts = [("120.50", INCOME), ("30.25", EXPENSE), ("99.99", EXPENSE), ("5", INCOME)]
        for amount, tx_type in amounts:
            finance_storage.add_transaction(make_transaction(user.id, amount, tx_type, TODAY))

        stats = (await aggregator.get_dashboard_data(user.id, "week")).stats

        assert stats.balance == stats.total_income - stats.total_expense
        assert stats.transaction_count == len(amounts)
        assert stats.total_income == Decimal("125.50")
        assert stats.total_expense == Decimal("130.24")

    async def test_budgets_not_filtered_by_period(self, aggregator, finance_storage, user):
        older = make_budget(user.id, "Last year", datetime(2023, 1, 1, tzinfo=timezone.utc))
        newer = make_budget(user.id, "This month", datetime(2024, 5, 1, tzinfo=timezone.utc))
        finance_storage.add_budget(older)
        finance_storage.add_budget(newer)

        data = await aggregator.get_dashboard_data(user.id, "day")

        assert [b.name for b in data.budgets] == ["This month", "Last year"]

    async def test_invalid_period(self, aggregator, user):
        with pytest.raises(ValidationError):
            await aggregator.get_dashboard_data(user.id, "decade")

    async def test_storage_failure_raises_dependency_error(self, user):
        storage = AsyncMock()
        storage.list_transactions.side_effect = StorageError("connection refused")
        aggregator = DashboardAggregator(storage, clock=lambda: TODAY, recent_limit=4)

        with pytest.raises(DependencyError):
            await aggregator.get_dashboard_data(user.id, "month")


class TestTransactionChanges:
    """Create, edit and delete through the aggregator."""

    def _draft(self, amount="250.00", tx_type=EXPENSE):
        return TransactionDraft(
            title="Dinner",
            amount=Decimal(amount),
            type=tx_type,
            category="food",
            date=TODAY,
        )

    async def test_created_transaction_appears_on_dashboard(self, aggregator, user):
        await aggregator.create_transaction(user.id, self._draft())

        data = await aggregator.get_dashboard_data(user.id, "day")

        assert data.stats.total_expense == Decimal("250.00")

    async def test_update_transaction(self, aggregator, user):
        created = await aggregator.create_transaction(user.id, self._draft())

        updated = await aggregator.update_transaction(
            user.id, created.id, self._draft(amount="300.00", tx_type=INCOME),
        )

        assert updated.id == created.id
        assert updated.amount == Decimal("300.00")
        assert updated.is_income

    async def test_update_someone_elses_transaction_fails(self, aggregator, user):
        created = await aggregator.create_transaction(user.id, self._draft())

        with pytest.raises(NotFoundError):
            await aggregator.update_transaction(uuid4(), created.id, self._draft())

    async def test_delete_transaction(self, aggregator, user):
        created = await aggregator.create_transaction(user.id, self._draft())

        await aggregator.delete_transaction(user.id, created.id)

        data = await aggregator.get_dashboard_data(user.id, "day")
        assert data.all_transactions == []

    async def test_delete_missing_transaction_fails(self, aggregator, user):
        with pytest.raises(NotFoundError):
            await aggregator.delete_transaction(user.id, uuid4())


class TestDashboardState:
    """The view keeps its last values when a refresh fails."""

    async def test_refresh_applies_all_values(self, aggregator, finance_storage, user):
        finance_storage.add_transaction(make_transaction(user.id, "100", INCOME, TODAY))
        finance_storage.add_budget(make_budget(user.id, "Food", datetime(2024, 5, 1, tzinfo=timezone.utc)))
        state = DashboardState(aggregator)

        applied = await state.refresh(user.id, "day")

        assert applied is True
        assert state.stats.total_income == Decimal("100")
        assert len(state.recent_transactions) == 1
        assert len(state.budgets) == 1
        assert state.loading is False
        assert state.pop_notifications() == []

    async def test_no_user_does_nothing(self, aggregator):
        state = DashboardState(aggregator)

        assert await state.refresh(None, "day") is False
        assert state.stats.transaction_count == 0
        assert state.notifications == []

    async def test_budget_failure_keeps_previous_values(self, finance_storage, user):
        """Transactions loading but budgets failing applies nothing."""
        finance_storage.add_transaction(make_transaction(user.id, "100", INCOME, TODAY))
        aggregator = DashboardAggregator(finance_storage, clock=lambda: TODAY, recent_limit=4)
        state = DashboardState(aggregator)
        await state.refresh(user.id, "day")
        previous_stats = state.stats

        finance_storage.add_transaction(make_transaction(user.id, "50", EXPENSE, TODAY))
        finance_storage.list_budgets = AsyncMock(side_effect=StorageError("timeout"))

        applied = await state.refresh(user.id, "day")

        assert applied is False
        assert state.stats == previous_stats
        assert state.stats.transaction_count == 1
        assert state.loading is False
        assert state.pop_notifications() == ["Failed to load dashboard data"]
        assert state.pop_notifications() == []

    async def test_failure_before_any_load_leaves_zeros(self, user):
        storage = AsyncMock()
        storage.list_transactions.side_effect = StorageError("down")
        state = DashboardState(DashboardAggregator(storage, clock=lambda: TODAY, recent_limit=4))

        await state.refresh(user.id, "month")

        assert state.stats.balance == Decimal("0")
        assert state.all_transactions == []
        assert state.notifications == ["Failed to load dashboard data"]

    async def test_unknown_period_queues_notification(self, aggregator, finance_storage, user):
        finance_storage.add_transaction(make_transaction(user.id, "100", INCOME, TODAY))
        state = DashboardState(aggregator)
        await state.refresh(user.id, "day")

        applied = await state.refresh(user.id, "fortnight")

        assert applied is False
        assert state.period == TimePeriod.DAY
        assert state.stats.transaction_count == 1
        assert state.loading is False
        assert state.pop_notifications() == ["Failed to load dashboard data"]
