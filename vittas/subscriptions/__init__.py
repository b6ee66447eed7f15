"""Subscription state and feature gating."""

from vittas.subscriptions.features import FEATURE_TIERS, can_access
from vittas.subscriptions.manager import (
    ACTIVATED_MESSAGE,
    CANCELLED_MESSAGE,
    SubscriptionManager,
    require_email,
)

__all__ = [
    "ACTIVATED_MESSAGE",
    "CANCELLED_MESSAGE",
    "FEATURE_TIERS",
    "SubscriptionManager",
    "can_access",
    "require_email",
]
