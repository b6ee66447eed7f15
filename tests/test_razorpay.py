"""Tests for the Razorpay client."""

import hashlib
import hmac

import httpx
import pytest
from tenacity import wait_none

from vittas.config.settings import RazorpaySettings
from vittas.errors import DependencyError
from vittas.services.payments import RazorpayService


class TestFetch:

    async def test_fetch_payment(self, razorpay_service, fake_razorpay):
        fake_razorpay.add_payment("pay_1", "order_1")

        payment = await razorpay_service.fetch_payment("pay_1")

        assert payment["status"] == "captured"
        assert fake_razorpay.requests[0].url.path == "/v1/payments/pay_1"

    async def test_fetch_order_failure_message(self, razorpay_service):
        with pytest.raises(DependencyError, match="Failed to fetch order: 400 - "):
            await razorpay_service.fetch_order("order_missing")

    async def test_reads_retry_transport_errors(self, razorpay_settings, fake_razorpay):
        attempts = []

        def flaky(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("reset", request=request)
            return fake_razorpay.handler(request)

        fake_razorpay.add_order("order_1", {})
        service = RazorpayService(
            settings=razorpay_settings,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(flaky)),
        )

        get = RazorpayService._get.retry_with(wait=wait_none())
        response = await get(service, "orders/order_1")

        assert response.status_code == 200
        assert len(attempts) == 3

    async def test_reads_give_up_after_three_attempts(self, razorpay_settings):
        attempts = []

        def down(request):
            attempts.append(request)
            raise httpx.ConnectError("down", request=request)

        service = RazorpayService(
            settings=razorpay_settings,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(down)),
        )

        get = RazorpayService._get.retry_with(wait=wait_none())
        with pytest.raises(httpx.ConnectError):
            await get(service, "payments/pay_1")
        assert len(attempts) == 3


class TestWebhookSignature:

    def _service(self, secret):
        return RazorpayService(settings=RazorpaySettings(webhook_secret=secret))

    def test_no_secret_accepts_anything(self):
        assert self._service(None).verify_webhook_signature(b"{}", None) is True

    def test_matching_signature(self):
        body = b'{"event":"payment.captured"}'
        signature = hmac.new(b"whsec", body, hashlib.sha256).hexdigest()
        assert self._service("whsec").verify_webhook_signature(body, signature) is True

    def test_tampered_body(self):
        signature = hmac.new(b"whsec", b"original", hashlib.sha256).hexdigest()
        assert self._service("whsec").verify_webhook_signature(b"tampered", signature) is False

    def test_missing_signature(self):
        assert self._service("whsec").verify_webhook_signature(b"{}", None) is False
