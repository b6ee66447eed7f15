"""Checkout: processor orders and UPI payment links."""

from vittas.checkout.initiator import (
    CheckoutInitiator,
    UpiQrGenerator,
    build_receipt,
    get_plan_pricing,
)

__all__ = [
    "CheckoutInitiator",
    "UpiQrGenerator",
    "build_receipt",
    "get_plan_pricing",
]
