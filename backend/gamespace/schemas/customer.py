"""Customer schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from gamespace.schemas.bill import BillResponse


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)


class CustomerResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerWithDueBills(CustomerResponse):
    due_bills: List[BillResponse] = []
