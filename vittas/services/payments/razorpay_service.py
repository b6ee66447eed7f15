"""
Razorpay Payment Gateway Client

Thin async wrapper over the Razorpay REST API using httpx with basic auth.

DESIGN DECISION: Only read-only calls (fetch payment, fetch order) are
retried. Creating an order is not idempotent; a retried POST after a lost
response could create a second order, so it is attempted exactly once.
"""

import hashlib
import hmac
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vittas.config import get_settings
from vittas.config.settings import RazorpaySettings
from vittas.errors import ConfigurationError, DependencyError


class RazorpayService:
    """
    Client for the Razorpay orders and payments APIs.

    Credentials are checked per call, so the service can be constructed
    before they are configured.
    """

    def __init__(
        self,
        settings: Optional[RazorpaySettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().razorpay
        self._http_client = http_client

    @property
    def key_id(self) -> Optional[str]:
        return self._settings.key_id

    @property
    def webhook_secret(self) -> Optional[str]:
        return self._settings.webhook_secret

    def _credentials(self) -> tuple[str, str]:
        if not self._settings.has_credentials:
            raise ConfigurationError("Razorpay credentials not configured")
        return self._settings.key_id, self._settings.key_secret

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self._settings.api_base.rstrip('/')}/v1/{path}"
        auth = httpx.BasicAuth(*self._credentials())
        if self._http_client is not None:
            return await self._http_client.request(method, url, auth=auth, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.request(method, url, auth=auth, **kwargs)

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict,
    ) -> dict:
        """
        Create an order for ``amount`` in the smallest currency unit.

        Raises:
            ConfigurationError: If credentials are missing (no call is made)
            DependencyError: If Razorpay answers with a non-2xx status
        """
        try:
            response = await self._request(
                "POST",
                "orders",
                json={
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes,
                },
            )
        except httpx.HTTPError as e:
            raise DependencyError(f"Razorpay order creation failed: {e}")

        if not response.is_success:
            raise DependencyError(f"Razorpay order creation failed: {response.text}")
        return response.json()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, path: str) -> httpx.Response:
        return await self._request("GET", path)

    async def _fetch(self, failure: str, path: str) -> dict:
        try:
            response = await self._get(path)
        except httpx.HTTPError as e:
            raise DependencyError(f"{failure}: {e}")
        if not response.is_success:
            raise DependencyError(f"{failure}: {response.status_code} - {response.text}")
        return response.json()

    async def fetch_payment(self, payment_id: str) -> dict:
        """Fetch a payment by id (retried on transport errors)."""
        return await self._fetch("Failed to verify payment", f"payments/{payment_id}")

    async def fetch_order(self, order_id: str) -> dict:
        """Fetch an order by id (retried on transport errors)."""
        return await self._fetch("Failed to fetch order", f"orders/{order_id}")

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """
        Check ``X-Razorpay-Signature`` against the configured webhook secret.

        Returns True when no secret is configured.
        """
        secret = self._settings.webhook_secret
        if not secret:
            return True
        if not signature:
            return False
        expected = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)
