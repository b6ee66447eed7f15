"""
Shared fixtures.

External services are never called: Razorpay and Supabase are served by
httpx.MockTransport handlers, storage uses the in-memory backends, and
bearer tokens are resolved by a fake auth service.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import httpx
import pytest

from vittas.config.settings import RazorpaySettings
from vittas.errors import AuthenticationError
from vittas.models.finance import Budget, Transaction, TransactionType
from vittas.models.subscription import AuthenticatedUser, Profile
from vittas.services.auth import AuthServiceInterface
from vittas.services.payments import RazorpayService
from vittas.services.storage import (
    InMemoryFinanceStorage,
    InMemorySharedExpenseStorage,
    InMemorySubscriptionStorage,
)


# Wednesday
TODAY = date(2024, 5, 15)
NOW = datetime(2024, 5, 15, 10, 30, tzinfo=timezone.utc)

VALID_TOKEN = "valid-token"
NO_EMAIL_TOKEN = "no-email-token"


class FakeAuthService(AuthServiceInterface):
    """Resolves a fixed set of tokens."""

    def __init__(self, users: dict[str, AuthenticatedUser]):
        self._users = users

    async def get_user(self, token: str) -> AuthenticatedUser:
        user = self._users.get(token)
        if user is None:
            raise AuthenticationError("Authentication error: invalid JWT")
        return user


class FakeRazorpay:
    """
    In-process stand-in for the Razorpay orders and payments API.

    Every request is recorded so tests can assert what was (not) sent.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.orders: dict[str, dict] = {}
        self.payments: dict[str, dict] = {}
        self.order_failure: Optional[tuple[int, str]] = None

    def add_order(self, order_id: str, notes: dict, amount: int = 74900) -> dict:
        order = {
            "id": order_id,
            "entity": "order",
            "amount": amount,
            "currency": "INR",
            "status": "paid",
            "notes": notes,
        }
        self.orders[order_id] = order
        return order

    def add_payment(self, payment_id: str, order_id: str, status: str = "captured") -> dict:
        payment = {
            "id": payment_id,
            "entity": "payment",
            "amount": 74900,
            "currency": "INR",
            "status": status,
            "order_id": order_id,
        }
        self.payments[payment_id] = payment
        return payment

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/v1/orders":
            if self.order_failure:
                status, body = self.order_failure
                return httpx.Response(status, text=body)
            body = json.loads(request.content)
            order = self.add_order(
                f"order_{len(self.orders) + 1:04d}",
                notes=body["notes"],
                amount=body["amount"],
            )
            order.update(status="created", receipt=body["receipt"], currency=body["currency"])
            return httpx.Response(200, json=order)

        if request.method == "GET" and path.startswith("/v1/orders/"):
            order = self.orders.get(path.rsplit("/", 1)[-1])
            if order is None:
                return httpx.Response(400, json={"error": {"description": "The id provided does not exist"}})
            return httpx.Response(200, json=order)

        if request.method == "GET" and path.startswith("/v1/payments/"):
            payment = self.payments.get(path.rsplit("/", 1)[-1])
            if payment is None:
                return httpx.Response(400, json={"error": {"description": "The id provided does not exist"}})
            return httpx.Response(200, json=payment)

        return httpx.Response(404, json={"error": {"description": "not found"}})


def make_transaction(
    user_id: UUID,
    amount: str,
    tx_type: TransactionType,
    on: date,
    title: str = "Entry",
    category: str = "other",
) -> Transaction:
    return Transaction(
        id=uuid4(),
        user_id=user_id,
        title=title,
        amount=Decimal(amount),
        type=tx_type,
        category=category,
        date=on,
        created_at=NOW,
    )


def make_budget(user_id: UUID, name: str, created_at: datetime) -> Budget:
    return Budget(
        id=uuid4(),
        user_id=user_id,
        name=name,
        amount=Decimal("5000"),
        category="food",
        period="monthly",
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 31),
        created_at=created_at,
    )


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), email="asha@example.com")


@pytest.fixture
def auth_service(user) -> FakeAuthService:
    return FakeAuthService({
        VALID_TOKEN: user,
        NO_EMAIL_TOKEN: AuthenticatedUser(id=uuid4(), email=None),
    })


@pytest.fixture
def finance_storage() -> InMemoryFinanceStorage:
    return InMemoryFinanceStorage(clock=lambda: NOW)


@pytest.fixture
def subscription_storage(user) -> InMemorySubscriptionStorage:
    """Storage holding the signed-in user's profile, as created at sign-up."""
    storage = InMemorySubscriptionStorage(clock=lambda: NOW)
    storage.add_profile(Profile(id=user.id, email=user.email, subscription_tier="Individual"))
    return storage


@pytest.fixture
def shared_expense_storage() -> InMemorySharedExpenseStorage:
    return InMemorySharedExpenseStorage(clock=lambda: NOW)


@pytest.fixture
def fake_razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
def razorpay_settings() -> RazorpaySettings:
    return RazorpaySettings(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        webhook_secret=None,
    )


@pytest.fixture
def razorpay_service(fake_razorpay, razorpay_settings) -> RazorpayService:
    return RazorpayService(
        settings=razorpay_settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_razorpay.handler)),
    )
