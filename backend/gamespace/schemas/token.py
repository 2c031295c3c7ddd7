"""Token schemas: a visit with everything recorded against it."""

from datetime import datetime
from typing import List

from pydantic import BaseModel

from gamespace.schemas.bill import BillResponse
from gamespace.schemas.order import OrderSummary
from gamespace.schemas.session import SessionResponse


class TokenResponse(BaseModel):
    id: int
    token_no: int
    created_at: datetime
    sessions: List[SessionResponse] = []
    orders: List[OrderSummary] = []
    bills: List[BillResponse] = []

    model_config = {"from_attributes": True}
