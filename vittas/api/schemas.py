"""Request bodies accepted by the HTTP functions (camelCase on the wire)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ManageSubscriptionRequest(BaseModel):
    action: Optional[str] = None


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_type: Optional[str] = Field(default=None, alias="planType")


class ManualSubscriptionUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_id: str = Field(..., min_length=1, alias="paymentId")
    order_id: str = Field(..., min_length=1, alias="orderId")
    plan_type: Optional[str] = Field(default=None, alias="planType")


class UpiQrRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: int = Field(..., gt=0, description="Amount in paise")
    plan_type: str = Field(..., alias="planType")
    order_id: str = Field(..., min_length=1, alias="orderId")
