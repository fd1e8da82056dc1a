"""
Payment-related data models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentOrder(BaseModel):
    """
    An order issued by the payment provider.

    Only the fields the backend relies on are declared; the rest of the
    provider payload is kept as extra attributes and returned to clients.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    amount: int = Field(description="Amount in minor currency units (paise)")
    currency: str
    receipt: Optional[str] = None
    status: str = "created"


class OrderRequest(BaseModel):
    """Request body for creating a payment order."""

    appointment_id: str = Field(alias="appointmentId", min_length=1)

    model_config = {"populate_by_name": True}


class PaymentVerification(BaseModel):
    """Fields returned by the Razorpay checkout after a payment."""

    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
