"""Payment gateway services package."""

from vittas.services.payments.razorpay_service import RazorpayService

__all__ = ["RazorpayService"]
