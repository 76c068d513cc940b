"""Payment-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.payment import PaymentMethod, PaymentStatus
from .common import Money


class PaymentRequest(BaseModel):
    """Record a payment against a booking."""

    method: PaymentMethod = Field(..., description="stripe, paypal, bank_transfer or cash")
    transaction_id: Optional[str] = Field(None, max_length=255)
    payment_details: Optional[Dict[str, Any]] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    amount: Money
    currency: str
    method: PaymentMethod
    status: PaymentStatus
    transaction_id: Optional[str] = None
    created_at: datetime
