"""
Checkout Initiator

Creates a Razorpay order for a paid plan and returns what the client-side
checkout widget needs to collect the payment. Also builds the UPI deep
link and QR code offered as an alternative way to pay.

Nothing is persisted here. The subscription only changes once the payment
is verified or the captured-payment webhook arrives.
"""

import time
from decimal import Decimal
from typing import Callable, Optional
from urllib.parse import quote

from vittas.audit import AuditLogger, log_step
from vittas.config import get_settings
from vittas.errors import ValidationError
from vittas.models.subscription import (
    PLAN_PRICING,
    AuthenticatedUser,
    CheckoutOrder,
    PlanPricing,
    UpiQrCode,
)
from vittas.services.payments import RazorpayService


CHECKOUT_FUNCTION = "RAZORPAY-CHECKOUT"
UPI_FUNCTION = "GENERATE-UPI-QR"

QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/"
QR_SIZE = "200x200"

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def get_plan_pricing(plan_type: Optional[str]) -> PlanPricing:
    """
    Look up the fixed price of a paid plan.

    Raises:
        ValidationError: If the plan is not Premium or Organization
    """
    pricing = PLAN_PRICING.get(plan_type or "")
    if pricing is None:
        raise ValidationError("Invalid plan type")
    return pricing


def build_receipt(user_id, epoch_ms: int) -> str:
    return f"vittas_{user_id}_{epoch_ms}"


class CheckoutInitiator:
    """
    Starts the payment flow for a plan upgrade.

    Usage:
        initiator = CheckoutInitiator(RazorpayService())
        order = await initiator.create_order(user, "Premium")
    """

    def __init__(
        self,
        payments: Optional[RazorpayService] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock_ms: Callable[[], int] = _epoch_ms,
    ):
        self._payments = payments or RazorpayService()
        self._audit = audit_logger or AuditLogger()
        self._clock_ms = clock_ms

    async def create_order(
        self,
        user: AuthenticatedUser,
        plan_type: Optional[str],
    ) -> CheckoutOrder:
        """
        Create a processor order for ``plan_type``.

        The plan and credentials are checked before Razorpay is called.

        Raises:
            ValidationError: If the plan is unknown
            ConfigurationError: If Razorpay credentials are missing
            DependencyError: If Razorpay rejects the order
        """
        log_step(CHECKOUT_FUNCTION, "Plan type received", plan_type=plan_type)
        pricing = get_plan_pricing(plan_type)

        receipt = build_receipt(user.id, self._clock_ms())
        notes = {
            "user_id": str(user.id),
            "email": user.email,
            "plan_type": pricing.plan.value,
            "trial_days": pricing.trial_days,
        }

        order = await self._payments.create_order(
            amount=pricing.amount,
            currency=pricing.currency,
            receipt=receipt,
            notes=notes,
        )
        log_step(CHECKOUT_FUNCTION, "Razorpay order created", order_id=order.get("id"))

        checkout = CheckoutOrder(
            order_id=order["id"],
            amount=order.get("amount", pricing.amount),
            currency=order.get("currency", pricing.currency),
            key_id=self._payments.key_id,
            plan_name=pricing.plan_name,
            trial_days=pricing.trial_days,
        )

        await self._audit.log_order_created(
            user_id=user.id,
            order_id=checkout.order_id,
            plan_type=pricing.plan.value,
            amount=checkout.amount,
        )
        return checkout


class UpiQrGenerator:
    """Builds UPI payment links and QR image URLs for pending orders."""

    def __init__(
        self,
        upi_id: Optional[str] = None,
        payee_name: Optional[str] = None,
    ):
        app_settings = get_settings().app
        self.upi_id = upi_id or app_settings.upi_id
        self.payee_name = payee_name or app_settings.upi_payee_name

    def generate(self, amount: int, plan_type: str, order_id: str) -> UpiQrCode:
        """
        Build the UPI link for ``amount`` paise.

        Raises:
            ValidationError: If the amount is not positive or the order id is empty
        """
        log_step(UPI_FUNCTION, "QR generation request", amount=amount,
                 plan_type=plan_type, order_id=order_id)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("amount must be a positive number of paise")
        if not order_id:
            raise ValidationError("orderId is required")

        rupees = Decimal(amount) / 100
        note = f"Payment for {plan_type} Plan - Order {order_id}"
        upi_url = (
            f"upi://pay?pa={self.upi_id}"
            f"&pn={quote(self.payee_name, safe=_URI_COMPONENT_SAFE)}"
            f"&am={rupees}"
            f"&cu=INR"
            f"&tn={quote(note, safe=_URI_COMPONENT_SAFE)}"
            f"&tr={order_id}"
        )
        qr_code_url = (
            f"{QR_SERVICE_URL}?size={QR_SIZE}"
            f"&data={quote(upi_url, safe=_URI_COMPONENT_SAFE)}"
        )

        log_step(UPI_FUNCTION, "QR code generated", qr_code_url=qr_code_url, upi_url=upi_url)
        return UpiQrCode(
            qr_code_url=qr_code_url,
            upi_url=upi_url,
            upi_id=self.upi_id,
            amount=rupees,
            currency="INR",
        )
