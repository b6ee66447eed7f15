"""
Subscription and Billing Models for Vittas

A user's subscription lives in two places: the ``subscribers`` row and the
denormalized ``profiles.subscription_tier``. These models describe both,
the single write unit that keeps them in agreement, and the checkout
objects exchanged with Razorpay.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer


DEFAULT_TIER = "Individual"


class SubscriptionTier(str, Enum):
    """Subscription plan levels."""
    INDIVIDUAL = "Individual"
    PREMIUM = "Premium"
    ORGANIZATION = "Organization"


# Tiers that can be bought through checkout
PAID_TIERS = frozenset({SubscriptionTier.PREMIUM.value, SubscriptionTier.ORGANIZATION.value})


class AuthenticatedUser(BaseModel):
    """Identity resolved from a bearer token."""

    id: UUID
    email: Optional[str] = None


# =============================================================================
# STORED RECORDS
# =============================================================================

class SubscriberRecord(BaseModel):
    """One row of the subscribers table (one per user)."""

    user_id: UUID
    email: Optional[str] = None
    subscribed: bool = False
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Profile(BaseModel):
    """The profile columns this code reads."""

    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    currency: Optional[str] = None
    subscription_tier: Optional[str] = None


class SubscriptionState(BaseModel):
    """
    Target state for the Subscriber + Profile pair.

    CRITICAL: Storage backends apply this as ONE write. The two records
    can never be observed disagreeing after a successful apply.
    """

    subscribed: bool
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    profile_tier: str = DEFAULT_TIER
    email: Optional[str] = None

    @classmethod
    def cancelled(cls, default_tier: str = DEFAULT_TIER) -> 'SubscriptionState':
        return cls(
            subscribed=False,
            subscription_tier=None,
            subscription_end=None,
            profile_tier=default_tier,
        )

    @classmethod
    def active(
        cls,
        tier: str,
        subscription_end: datetime,
        email: Optional[str] = None,
    ) -> 'SubscriptionState':
        return cls(
            subscribed=True,
            subscription_tier=tier,
            subscription_end=subscription_end,
            profile_tier=tier,
            email=email,
        )


class SubscriptionStatus(BaseModel):
    """Read-only projection returned by get_status."""

    subscribed: bool = False
    subscription_tier: str = DEFAULT_TIER
    subscription_end: Optional[datetime] = None


class ActivationResult(BaseModel):
    """Outcome of activating a paid subscription."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")
    plan_type: str = Field(..., alias="planType")
    subscription_end: datetime = Field(..., alias="subscriptionEnd")


# =============================================================================
# CHECKOUT
# =============================================================================

class PlanPricing(BaseModel):
    """Fixed price of a paid plan, in the smallest currency unit."""

    plan: SubscriptionTier
    amount: int = Field(..., gt=0, description="Amount in paise")
    currency: str = "INR"
    plan_name: str
    trial_days: int = Field(default=0, ge=0)


PLAN_PRICING: dict[str, PlanPricing] = {
    SubscriptionTier.PREMIUM.value: PlanPricing(
        plan=SubscriptionTier.PREMIUM,
        amount=74900,  # ₹749
        plan_name="Vittas Premium Plan",
        trial_days=7,
    ),
    SubscriptionTier.ORGANIZATION.value: PlanPricing(
        plan=SubscriptionTier.ORGANIZATION,
        amount=224900,  # ₹2249
        plan_name="Vittas Organization Plan",
        trial_days=0,
    ),
}


class CheckoutOrder(BaseModel):
    """
    Parameters the client-side checkout widget needs to resume the flow.

    Serialized with camelCase keys.
    """
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")
    amount: int
    currency: str
    key_id: str = Field(..., alias="keyId")
    plan_name: str = Field(..., alias="planName")
    trial_days: int = Field(..., alias="trialDays")


class UpiQrCode(BaseModel):
    """UPI deep link and QR image URL for a pending order."""
    model_config = ConfigDict(populate_by_name=True)

    qr_code_url: str = Field(..., alias="qrCodeUrl")
    upi_url: str = Field(..., alias="upiUrl")
    upi_id: str = Field(..., alias="upiId")
    amount: Decimal = Field(..., description="Amount in rupees")
    currency: str = "INR"

    @field_serializer("amount", when_used="json")
    def amount_as_number(self, v: Decimal) -> float:
        return float(v)
