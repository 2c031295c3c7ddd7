"""Bill schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from gamespace.models.bill import PaymentStatus


class BillStatusUpdate(BaseModel):
    """Payment update for a bill."""

    status: PaymentStatus
    corrected_amount: Optional[Decimal] = Field(default=None, ge=0)
    amount_received: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    payment_reference: Optional[str] = Field(default=None, max_length=200)
    customer_id: Optional[int] = None


class BillResponse(BaseModel):
    """Bill response schema."""

    id: int
    token_id: int
    order_id: Optional[int] = None
    customer_id: Optional[int] = None
    amount: Decimal
    corrected_amount: Optional[Decimal] = None
    amount_received: Optional[Decimal] = None
    payable_amount: Decimal
    status: PaymentStatus
    generated_at: datetime
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None

    model_config = {"from_attributes": True}
