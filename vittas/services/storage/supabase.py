"""
Supabase Storage Implementation

Talks to the Supabase REST API (PostgREST) over httpx. A small query
builder covers the operations we need: select with equality and range
filters, ordering, insert, update, delete and RPC calls.

DESIGN DECISION: Numeric columns are parsed straight into Decimal
(``parse_float=Decimal``) so money never passes through a float.

TRADEOFFS:
- PostgREST has no multi-statement transactions. Writes that must be
  atomic go through a Postgres function invoked as an RPC
  (see sql/apply_subscription_state.sql).
- Shared expense creation is two inserts; a failed second insert is
  compensated by deleting the first.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from vittas.config import get_settings
from vittas.config.settings import SupabaseSettings
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
    StorageError,
    SubscriptionStorageInterface,
)


PROFILE_COLUMNS = "id,email,full_name,currency,subscription_tier"


def _encode(value: Any) -> str:
    """Render a filter value the way PostgREST expects it."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_rows(model: type[BaseModel], rows: list[dict], table: str) -> list:
    try:
        return [model.model_validate(row) for row in rows]
    except PydanticValidationError as e:
        raise StorageError(f"Malformed row in {table}: {e}")


class SupabaseClient:
    """
    Low-level Supabase REST client.

    Uses the backend key by default. Pass ``access_token`` to run queries
    as a signed-in user so row level security applies.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._api_key = api_key or self._settings.backend_key
        self._access_token = access_token
        self._http_client = http_client

    @property
    def rest_url(self) -> str:
        return f"{self._settings.url}/rest/v1"

    def table(self, name: str) -> 'TableQuery':
        return TableQuery(self, name)

    async def rpc(self, function: str, params: dict) -> Any:
        """Call a Postgres function exposed through PostgREST."""
        return await self.send("POST", f"rpc/{function}", json_body=params)

    def _headers(self, prefer: Optional[str]) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def send(
        self,
        method: str,
        path: str,
        params: Optional[list[tuple[str, str]]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Send one request to PostgREST and decode the JSON response.

        Raises:
            StorageError: On transport failure or a non-2xx response
        """
        url = f"{self.rest_url}/{path}"
        kwargs = {
            "params": params,
            "headers": self._headers(prefer),
        }
        if json_body is not None:
            kwargs["content"] = json.dumps(json_body, default=_encode)

        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"Could not reach Supabase: {e}")

        if response.status_code >= 400:
            message = response.text
            try:
                message = response.json().get("message", message)
            except (ValueError, AttributeError):
                pass
            raise StorageError(f"{method} {path} failed ({response.status_code}): {message}")

        if not response.content:
            return None
        return json.loads(response.text, parse_float=Decimal)


class TableQuery:
    """
    Chainable query against one table.

    Usage:
        rows = await (
            client.table("transactions")
            .select("*")
            .eq("user_id", user_id)
            .gte("date", start)
            .order("date", desc=True)
            .execute()
        )
    """

    def __init__(self, client: SupabaseClient, table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: list[tuple[str, str]] = []
        self._body: Any = None
        self._prefer: Optional[str] = None

    def select(self, columns: str = "*") -> 'TableQuery':
        self._params.append(("select", columns))
        return self

    def eq(self, column: str, value: Any) -> 'TableQuery':
        self._params.append((column, f"eq.{_encode(value)}"))
        return self

    def gte(self, column: str, value: Any) -> 'TableQuery':
        self._params.append((column, f"gte.{_encode(value)}"))
        return self

    def lte(self, column: str, value: Any) -> 'TableQuery':
        self._params.append((column, f"lte.{_encode(value)}"))
        return self

    def order(self, column: str, desc: bool = False) -> 'TableQuery':
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def insert(self, rows: Any) -> 'TableQuery':
        self._method = "POST"
        self._body = rows
        self._prefer = "return=representation"
        return self

    def update(self, values: dict) -> 'TableQuery':
        self._method = "PATCH"
        self._body = values
        self._prefer = "return=representation"
        return self

    def delete(self) -> 'TableQuery':
        self._method = "DELETE"
        self._prefer = "return=representation"
        return self

    async def execute(self) -> list[dict]:
        result = await self._client.send(
            self._method,
            self._table,
            params=self._params,
            json_body=self._body,
            prefer=self._prefer,
        )
        if result is None:
            return []
        return result if isinstance(result, list) else [result]


class SupabaseFinanceStorage(FinanceStorageInterface):
    """Transactions and budgets stored in Supabase tables."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        query = self._client.table("transactions").select("*").eq("user_id", user_id)
        if date_from:
            query.gte("date", date_from)
        if date_to:
            query.lte("date", date_to)
        rows = await query.order("date", desc=True).execute()
        return _parse_rows(Transaction, rows, "transactions")

    async def get_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        rows = await (
            self._client.table("transactions")
            .select("*")
            .eq("id", transaction_id)
            .eq("user_id", user_id)
            .execute()
        )
        parsed = _parse_rows(Transaction, rows, "transactions")
        return parsed[0] if parsed else None

    async def create_transaction(
        self,
        user_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        rows = await (
            self._client.table("transactions")
            .insert({**draft.to_row(), "user_id": str(user_id)})
            .execute()
        )
        if not rows:
            raise StorageError("Insert into transactions returned no row")
        return _parse_rows(Transaction, rows, "transactions")[0]

    async def update_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
        draft: TransactionDraft,
    ) -> Transaction:
        values = {
            **draft.to_row(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        rows = await (
            self._client.table("transactions")
            .update(values)
            .eq("id", transaction_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not rows:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return _parse_rows(Transaction, rows, "transactions")[0]

    async def delete_transaction(
        self,
        user_id: UUID,
        transaction_id: UUID,
    ) -> bool:
        rows = await (
            self._client.table("transactions")
            .delete()
            .eq("id", transaction_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(rows)

    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        rows = await (
            self._client.table("budgets")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return _parse_rows(Budget, rows, "budgets")

    async def create_budget(
        self,
        user_id: UUID,
        draft: BudgetDraft,
    ) -> Budget:
        rows = await (
            self._client.table("budgets")
            .insert({**draft.to_row(), "user_id": str(user_id)})
            .execute()
        )
        if not rows:
            raise StorageError("Insert into budgets returned no row")
        return _parse_rows(Budget, rows, "budgets")[0]


class SupabaseSubscriptionStorage(SubscriptionStorageInterface):
    """
    Subscriber and profile records in Supabase.

    Writes go through the ``apply_subscription_state`` Postgres function,
    which updates both tables inside one transaction.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    async def get_subscriber(self, user_id: UUID) -> Optional[SubscriberRecord]:
        rows = await (
            self._client.table("subscribers")
            .select("*")
            .eq("user_id", user_id)
            .execute()
        )
        parsed = _parse_rows(SubscriberRecord, rows, "subscribers")
        return parsed[0] if parsed else None

    async def get_profile(self, user_id: UUID) -> Optional[Profile]:
        rows = await (
            self._client.table("profiles")
            .select(PROFILE_COLUMNS)
            .eq("id", user_id)
            .execute()
        )
        parsed = _parse_rows(Profile, rows, "profiles")
        return parsed[0] if parsed else None

    async def apply_subscription_state(
        self,
        user_id: UUID,
        state: SubscriptionState,
    ) -> None:
        await self._client.rpc(
            "apply_subscription_state",
            {
                "p_user_id": str(user_id),
                "p_email": state.email,
                "p_subscribed": state.subscribed,
                "p_subscription_tier": state.subscription_tier,
                "p_subscription_end": (
                    state.subscription_end.isoformat() if state.subscription_end else None
                ),
                "p_profile_tier": state.profile_tier,
            },
        )


class SupabaseSharedExpenseStorage(SharedExpenseStorageInterface):
    """Shared expenses and their participants in Supabase."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    def _row_to_expense(self, row: dict) -> SharedExpense:
        participants = row.pop("shared_expense_participants", None) or []
        try:
            return SharedExpense(
                **row,
                shares=[ExpenseShare.model_validate(p) for p in participants],
            )
        except PydanticValidationError as e:
            raise StorageError(f"Malformed row in shared_expenses: {e}")

    async def create_shared_expense(
        self,
        draft: SharedExpenseDraft,
        shares: list[ExpenseShare],
    ) -> SharedExpense:
        rows = await self._client.table("shared_expenses").insert(draft.to_row()).execute()
        if not rows:
            raise StorageError("Insert into shared_expenses returned no row")
        expense = self._row_to_expense(rows[0])

        participants = [
            {
                "shared_expense_id": str(expense.id),
                "user_id": str(share.user_id),
                "amount_owed": str(share.amount_owed),
                "paid": share.paid,
            }
            for share in shares
        ]
        try:
            await self._client.table("shared_expense_participants").insert(participants).execute()
        except StorageError:
            # Compensate so no expense exists without its participants
            await self.delete_shared_expense(expense.id)
            raise

        expense.shares = list(shares)
        return expense

    async def list_shared_expenses(self, group_id: UUID) -> list[SharedExpense]:
        rows = await (
            self._client.table("shared_expenses")
            .select("*,shared_expense_participants(user_id,amount_owed,paid)")
            .eq("group_id", group_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [self._row_to_expense(row) for row in rows]

    async def delete_shared_expense(self, expense_id: UUID) -> bool:
        rows = await (
            self._client.table("shared_expenses")
            .delete()
            .eq("id", expense_id)
            .execute()
        )
        return bool(rows)
