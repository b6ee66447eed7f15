"""Tests for the Supabase (PostgREST) storage backends.

A MockTransport handler plays the PostgREST server; tests assert on the
requests it receives and feed back canned rows.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import uuid4

import httpx
import pytest

from conftest import NOW
from vittas.config.settings import SupabaseSettings
from vittas.models.finance import TransactionDraft, TransactionType
from vittas.models.sharing import ExpenseShare, SharedExpenseDraft
from vittas.models.subscription import SubscriptionState
from vittas.services.storage import (
    NotFoundError,
    StorageError,
    SupabaseClient,
    SupabaseFinanceStorage,
    SupabaseSharedExpenseStorage,
    SupabaseSubscriptionStorage,
)


SETTINGS = SupabaseSettings(
    url="https://vittas.supabase.co/",
    anon_key="anon-key",
    service_role_key="service-key",
)


class FakePostgrest:
    """Records requests and answers with whatever the test queued."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=[])
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def reply(self, status: int = 200, rows=None, text: Optional[str] = None) -> None:
        if text is not None:
            self.responder = lambda request: httpx.Response(status, text=text)
        else:
            self.responder = lambda request: httpx.Response(status, json=rows)


@pytest.fixture
def postgrest() -> FakePostgrest:
    return FakePostgrest()


def _client(postgrest: FakePostgrest, access_token: Optional[str] = None) -> SupabaseClient:
    return SupabaseClient(
        settings=SETTINGS,
        access_token=access_token,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(postgrest.handler)),
    )


def _transaction_row(user_id, amount="12.34", on="2024-05-15") -> dict:
    return {
        "id": str(uuid4()),
        "user_id": str(user_id),
        "title": "Lunch",
        "amount": amount,
        "type": "expense",
        "category": "food",
        "date": on,
        "description": None,
        "created_at": NOW.isoformat(),
        "updated_at": None,
    }


class TestSupabaseClient:

    async def test_backend_key_headers(self, postgrest):
        await _client(postgrest).table("budgets").select("*").execute()

        request = postgrest.requests[0]
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert str(request.url).startswith("https://vittas.supabase.co/rest/v1/budgets")

    async def test_user_token_headers(self, postgrest):
        await _client(postgrest, access_token="user-jwt").table("budgets").select("*").execute()

        assert postgrest.requests[0].headers["Authorization"] == "Bearer user-jwt"

    async def test_error_status_raises(self, postgrest):
        postgrest.reply(401, {"message": "JWT expired"})

        with pytest.raises(StorageError, match=r"GET budgets failed \(401\): JWT expired"):
            await _client(postgrest).table("budgets").select("*").execute()

    async def test_non_json_error(self, postgrest):
        postgrest.reply(502, text="Bad Gateway")

        with pytest.raises(StorageError, match="Bad Gateway"):
            await _client(postgrest).table("budgets").select("*").execute()

    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = SupabaseClient(
            settings=SETTINGS,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
        )
        with pytest.raises(StorageError, match="Could not reach Supabase"):
            await client.table("budgets").select("*").execute()


class TestFinanceStorage:

    async def test_list_transactions_query(self, postgrest):
        user_id = uuid4()
        storage = SupabaseFinanceStorage(_client(postgrest))

        await storage.list_transactions(user_id, date(2024, 5, 1), date(2024, 5, 15))

        params = postgrest.requests[0].url.params
        assert params["select"] == "*"
        assert params["user_id"] == f"eq.{user_id}"
        assert params.get_list("date") == ["gte.2024-05-01", "lte.2024-05-15"]
        assert params["order"] == "date.desc"

    async def test_amounts_parse_as_decimal(self, postgrest):
        user_id = uuid4()
        row = _transaction_row(user_id)
        row["amount"] = 0.1
        postgrest.reply(rows=[row])

        [tx] = await SupabaseFinanceStorage(_client(postgrest)).list_transactions(user_id)

        assert tx.amount == Decimal("0.1")
        assert tx.description == ""

    async def test_malformed_row(self, postgrest):
        row = _transaction_row(uuid4())
        row["type"] = "transfer"
        postgrest.reply(rows=[row])

        with pytest.raises(StorageError, match="Malformed row in transactions"):
            await SupabaseFinanceStorage(_client(postgrest)).list_transactions(uuid4())

    async def test_update_missing_transaction(self, postgrest):
        draft = TransactionDraft(
            title="Lunch", amount=Decimal("10"), type=TransactionType.EXPENSE, date=date(2024, 5, 15),
        )

        with pytest.raises(NotFoundError):
            await SupabaseFinanceStorage(_client(postgrest)).update_transaction(uuid4(), uuid4(), draft)

        request = postgrest.requests[0]
        assert request.method == "PATCH"
        assert request.headers["Prefer"] == "return=representation"

    async def test_delete_reports_whether_a_row_went(self, postgrest):
        storage = SupabaseFinanceStorage(_client(postgrest))
        assert await storage.delete_transaction(uuid4(), uuid4()) is False

        postgrest.reply(rows=[_transaction_row(uuid4())])
        assert await storage.delete_transaction(uuid4(), uuid4()) is True

    async def test_budgets_newest_first(self, postgrest):
        await SupabaseFinanceStorage(_client(postgrest)).list_budgets(uuid4())

        assert postgrest.requests[0].url.params["order"] == "created_at.desc"


class TestSubscriptionStorage:

    async def test_apply_state_is_one_rpc(self, postgrest):
        postgrest.reply(204, text="")
        user_id = uuid4()
        state = SubscriptionState.active("Premium", NOW, email="asha@example.com")

        await SupabaseSubscriptionStorage(_client(postgrest)).apply_subscription_state(user_id, state)

        [request] = postgrest.requests
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/rpc/apply_subscription_state"
        assert json.loads(request.content) == {
            "p_user_id": str(user_id),
            "p_email": "asha@example.com",
            "p_subscribed": True,
            "p_subscription_tier": "Premium",
            "p_subscription_end": NOW.isoformat(),
            "p_profile_tier": "Premium",
        }

    async def test_cancelled_state_rpc(self, postgrest):
        postgrest.reply(204, text="")

        await SupabaseSubscriptionStorage(_client(postgrest)).apply_subscription_state(
            uuid4(), SubscriptionState.cancelled(),
        )

        body = json.loads(postgrest.requests[0].content)
        assert body["p_subscribed"] is False
        assert body["p_subscription_tier"] is None
        assert body["p_subscription_end"] is None
        assert body["p_profile_tier"] == "Individual"

    async def test_missing_subscriber(self, postgrest):
        storage = SupabaseSubscriptionStorage(_client(postgrest))
        assert await storage.get_subscriber(uuid4()) is None

    async def test_profile_columns(self, postgrest):
        await SupabaseSubscriptionStorage(_client(postgrest)).get_profile(uuid4())

        assert postgrest.requests[0].url.params["select"] == "id,email,full_name,currency,subscription_tier"


class TestSharedExpenseStorage:

    def _draft(self) -> SharedExpenseDraft:
        return SharedExpenseDraft(
            title="Cab", total_amount=Decimal("60.00"), group_id=uuid4(), created_by=uuid4(),
        )

    def _expense_row(self, draft: SharedExpenseDraft) -> dict:
        return {
            "id": str(uuid4()),
            "title": draft.title,
            "description": "",
            "total_amount": "60.00",
            "group_id": str(draft.group_id),
            "created_by": str(draft.created_by),
            "created_at": NOW.isoformat(),
        }

    async def test_create_inserts_participants(self, postgrest):
        draft = self._draft()
        row = self._expense_row(draft)
        postgrest.reply(rows=[row])
        shares = [
            ExpenseShare(user_id=draft.created_by, amount_owed=Decimal("30.00"), paid=True),
            ExpenseShare(user_id=uuid4(), amount_owed=Decimal("30.00")),
        ]

        expense = await SupabaseSharedExpenseStorage(_client(postgrest)).create_shared_expense(draft, shares)

        assert expense.shares == shares
        assert [r.url.path for r in postgrest.requests] == [
            "/rest/v1/shared_expenses",
            "/rest/v1/shared_expense_participants",
        ]
        participants = json.loads(postgrest.requests[1].content)
        assert participants[0] == {
            "shared_expense_id": row["id"],
            "user_id": str(draft.created_by),
            "amount_owed": "30.00",
            "paid": True,
        }

    async def test_failed_participants_insert_removes_expense(self, postgrest):
        draft = self._draft()
        row = self._expense_row(draft)

        def respond(request):
            if request.url.path.endswith("shared_expense_participants"):
                return httpx.Response(409, json={"message": "violates foreign key"})
            return httpx.Response(200, json=[row])

        postgrest.responder = respond
        shares = [ExpenseShare(user_id=draft.created_by, amount_owed=Decimal("60.00"), paid=True)]

        with pytest.raises(StorageError, match="violates foreign key"):
            await SupabaseSharedExpenseStorage(_client(postgrest)).create_shared_expense(draft, shares)

        cleanup = postgrest.requests[-1]
        assert cleanup.method == "DELETE"
        assert cleanup.url.params["id"] == f"eq.{row['id']}"

    async def test_list_embeds_participants(self, postgrest):
        draft = self._draft()
        row = self._expense_row(draft)
        row["shared_expense_participants"] = [
            {"user_id": str(draft.created_by), "amount_owed": 60.0, "paid": True},
        ]
        postgrest.reply(rows=[row])

        [expense] = await SupabaseSharedExpenseStorage(_client(postgrest)).list_shared_expenses(draft.group_id)

        assert expense.shares[0].paid is True
        assert expense.outstanding == Decimal("0")

    async def test_null_paid_reads_as_unpaid(self, postgrest):
        draft = self._draft()
        row = self._expense_row(draft)
        row["shared_expense_participants"] = [
            {"user_id": str(draft.created_by), "amount_owed": 60.0, "paid": None},
        ]
        postgrest.reply(rows=[row])

        [expense] = await SupabaseSharedExpenseStorage(_client(postgrest)).list_shared_expenses(draft.group_id)

        assert expense.shares[0].paid is False
        assert expense.outstanding == Decimal("60")
