"""
Subscription Manager

State machine over a user's subscription (Subscriber row + Profile tier).

Transitions:
- cancel: any state -> not subscribed, default tier
- activate (verified payment or captured-payment webhook) -> subscribed,
  paid tier, end date one subscription period out

CRITICAL: Every transition is written through
``apply_subscription_state``, which updates both records in one write.
Cancel is idempotent: cancelling twice leaves the same state as once.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from vittas.audit import AuditLogger, log_step
from vittas.config import get_settings
from vittas.errors import AuthenticationError, ValidationError
from vittas.models.subscription import (
    PAID_TIERS,
    ActivationResult,
    AuthenticatedUser,
    SubscriptionState,
    SubscriptionStatus,
)
from vittas.services.payments import RazorpayService
from vittas.services.storage.interface import SubscriptionStorageInterface


CANCELLED_MESSAGE = "Subscription cancelled successfully"
ACTIVATED_MESSAGE = "Subscription updated successfully"

MANAGE_FUNCTION = "MANAGE-SUBSCRIPTION"
MANUAL_UPDATE_FUNCTION = "MANUAL-SUB-UPDATE"
WEBHOOK_FUNCTION = "RAZORPAY-WEBHOOK"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def require_email(user: AuthenticatedUser) -> AuthenticatedUser:
    """Subscription changes need a user with a known email."""
    if not user.email:
        raise AuthenticationError("User not authenticated or email not available")
    return user


class SubscriptionManager:
    """
    Reads and changes subscription state.

    Usage:
        manager = SubscriptionManager(storage, payments)
        await manager.cancel(user)
        status = await manager.get_status(user)
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        payments: Optional[RazorpayService] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = _utcnow,
        default_tier: Optional[str] = None,
        subscription_days: Optional[int] = None,
    ):
        app_settings = get_settings().app
        self._storage = storage
        self._payments = payments
        self._audit = audit_logger or AuditLogger()
        self._clock = clock
        self._default_tier = app_settings.default_tier if default_tier is None else default_tier
        self._subscription_days = (
            app_settings.subscription_length_days if subscription_days is None else subscription_days
        )

    def _require_payments(self) -> RazorpayService:
        if self._payments is None:
            self._payments = RazorpayService()
        return self._payments

    async def cancel(self, user: AuthenticatedUser) -> dict:
        """Return the user to the default tier. Safe to call repeatedly."""
        log_step(MANAGE_FUNCTION, "Cancelling subscription", user_id=str(user.id))

        state = SubscriptionState.cancelled(self._default_tier)
        await self._storage.apply_subscription_state(user.id, state)

        await self._audit.log_subscription_cancelled(user.id)
        log_step(MANAGE_FUNCTION, "Subscription cancelled successfully", user_id=str(user.id))
        return {"success": True, "message": CANCELLED_MESSAGE}

    async def get_status(self, user: AuthenticatedUser) -> SubscriptionStatus:
        """
        Current subscription status.

        The profile tier is authoritative for the tier; a user with no
        subscriber row is reported as not subscribed.
        """
        subscriber = await self._storage.get_subscriber(user.id)
        profile = await self._storage.get_profile(user.id)

        status = SubscriptionStatus(
            subscribed=subscriber.subscribed if subscriber else False,
            subscription_tier=(
                profile.subscription_tier
                if profile and profile.subscription_tier
                else self._default_tier
            ),
            subscription_end=subscriber.subscription_end if subscriber else None,
        )
        log_step(MANAGE_FUNCTION, "Subscription status retrieved", user_id=str(user.id),
                 subscribed=status.subscribed, tier=status.subscription_tier)
        return status

    async def handle_action(self, user: AuthenticatedUser, action: Optional[str]) -> dict:
        """
        Dispatch a manage-subscription request.

        Raises:
            AuthenticationError: If the user has no email
            ValidationError: If the action is not "cancel" or "get_status"
        """
        require_email(user)
        log_step(MANAGE_FUNCTION, "Action requested", action=action)

        if action == "cancel":
            return await self.cancel(user)
        if action == "get_status":
            status = await self.get_status(user)
            return status.model_dump(mode="json")
        raise ValidationError("Invalid action")

    async def activate_from_payment(
        self,
        user: AuthenticatedUser,
        payment_id: str,
        order_id: str,
        plan_type: Optional[str] = None,
    ) -> ActivationResult:
        """
        Activate a paid plan after checking the payment with Razorpay.

        The payment must be captured and belong to ``order_id``, and the
        order must have been created for this user.

        Raises:
            ValidationError: On any payment, order, user or plan mismatch
            DependencyError: If Razorpay cannot be reached or refuses
        """
        require_email(user)
        if not payment_id or not order_id:
            raise ValidationError("paymentId and orderId are required")

        payments = self._require_payments()

        log_step(MANUAL_UPDATE_FUNCTION, "Verifying payment with Razorpay", payment_id=payment_id)
        payment = await payments.fetch_payment(payment_id)

        if payment.get("status") != "captured":
            raise ValidationError(f"Payment not captured. Status: {payment.get('status')}")
        if payment.get("order_id") != order_id:
            raise ValidationError(
                f"Order ID mismatch. Expected: {order_id}, Got: {payment.get('order_id')}"
            )

        log_step(MANUAL_UPDATE_FUNCTION, "Fetching order details", order_id=order_id)
        order = await payments.fetch_order(order_id)
        notes = order.get("notes") or {}

        order_user_id = notes.get("user_id")
        if order_user_id != str(user.id):
            raise ValidationError(
                f"User ID mismatch. Order user: {order_user_id}, Current user: {user.id}"
            )

        plan = notes.get("plan_type") or plan_type
        if plan not in PAID_TIERS:
            raise ValidationError(f"Invalid plan type: {plan}")

        subscription_end = self._clock() + timedelta(days=self._subscription_days)
        await self._storage.apply_subscription_state(
            user.id,
            SubscriptionState.active(plan, subscription_end, email=user.email),
        )

        await self._audit.log_subscription_activated(
            user_id=user.id,
            plan_type=plan,
            subscription_end=subscription_end,
            source="payment_verification",
        )
        log_step(MANUAL_UPDATE_FUNCTION, "Subscription activated", user_id=str(user.id),
                 plan_type=plan, subscription_end=subscription_end.isoformat())

        return ActivationResult(
            user_id=user.id,
            plan_type=plan,
            subscription_end=subscription_end,
        )

    async def handle_webhook(
        self,
        raw_body: bytes,
        signature: Optional[str] = None,
    ) -> Optional[ActivationResult]:
        """
        Apply a Razorpay webhook event.

        Only ``payment.captured`` changes state; other events are
        acknowledged and ignored (returns None). Re-delivery of the same
        event writes the same state again.

        Raises:
            AuthenticationError: If a webhook secret is configured and the
                signature does not match
            ValidationError: If the body or the order notes are unusable
        """
        payments = self._require_payments()
        if not payments.verify_webhook_signature(raw_body, signature):
            raise AuthenticationError("Invalid webhook signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Webhook body is not valid JSON")

        event_type = event.get("event") if isinstance(event, dict) else None
        log_step(WEBHOOK_FUNCTION, "Event type", event_type=event_type)
        if event_type != "payment.captured":
            return None

        try:
            payment = event["payload"]["payment"]["entity"]
            order_id = payment["order_id"]
        except (KeyError, TypeError):
            raise ValidationError("Webhook payload has no payment entity")

        log_step(WEBHOOK_FUNCTION, "Processing payment", payment_id=payment.get("id"),
                 order_id=order_id)
        order = await payments.fetch_order(order_id)
        notes = order.get("notes") or {}

        user_id = notes.get("user_id")
        plan = notes.get("plan_type")
        if not user_id or plan not in PAID_TIERS:
            raise ValidationError(f"Order {order_id} notes do not identify a user and plan")

        try:
            trial_days = int(notes.get("trial_days") or 0)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid trial_days in order {order_id} notes")

        subscription_start = self._clock() + timedelta(days=trial_days)
        subscription_end = subscription_start + timedelta(days=self._subscription_days)

        try:
            result = ActivationResult(
                user_id=user_id,
                plan_type=plan,
                subscription_end=subscription_end,
            )
        except PydanticValidationError:
            raise ValidationError(f"Invalid user_id in order {order_id} notes")
        await self._storage.apply_subscription_state(
            result.user_id,
            SubscriptionState.active(plan, subscription_end, email=notes.get("email")),
        )

        await self._audit.log_subscription_activated(
            user_id=result.user_id,
            plan_type=plan,
            subscription_end=subscription_end,
            source="webhook",
        )
        log_step(WEBHOOK_FUNCTION, "Subscription activated successfully",
                 user_id=user_id, plan_type=plan,
                 subscription_end=subscription_end.isoformat())
        return result
