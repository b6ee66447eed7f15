"""Which subscription tiers unlock which features."""

from typing import Optional

from vittas.models.subscription import PAID_TIERS, SubscriptionTier


_PAID = PAID_TIERS
_ORGANIZATION = frozenset({SubscriptionTier.ORGANIZATION.value})

FEATURE_TIERS: dict[str, frozenset[str]] = {
    "expense-sharing": _PAID,
    "analytics": _PAID,
    "export": _PAID,
    "unlimited-storage": _PAID,
    "multi-user": _ORGANIZATION,
    "api-access": _ORGANIZATION,
}


def can_access(tier: Optional[str], feature: str) -> bool:
    """True if ``tier`` unlocks ``feature``. Unknown features are locked."""
    allowed = FEATURE_TIERS.get(feature)
    if allowed is None or tier is None:
        return False
    return tier in allowed
