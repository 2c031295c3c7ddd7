"""Order and food line schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from gamespace.models.order import OrderStatus
from gamespace.schemas.session import SessionResponse
from gamespace.services.order_service import FoodItem


class FoodItemIn(BaseModel):
    """A food line as entered at the counter."""

    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=0)

    def to_item(self) -> FoodItem:
        return FoodItem(name=self.name, price=self.price, quantity=self.quantity)


class FoodLineItemResponse(BaseModel):
    id: int
    position: int
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """Order creation schema."""

    token_id: int
    notes: Optional[str] = None
    food_items: List[FoodItemIn] = []


class FoodOrderCreate(BaseModel):
    """Food-only order; a new token is issued for it."""

    food_items: List[FoodItemIn] = Field(min_length=1)
    notes: Optional[str] = None


class FoodItemsPayload(BaseModel):
    items: List[FoodItemIn]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    """Order response schema."""

    id: int
    order_number: str
    token_id: int
    status: OrderStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    food_items: List[FoodLineItemResponse] = []
    food_subtotal: Decimal
    sessions: List[SessionResponse] = []

    model_config = {"from_attributes": True}


class OrderSummary(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    start_time: datetime
    end_time: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderTotalResponse(BaseModel):
    order_id: int
    order_number: str
    sessions_total: Decimal
    food_total: Decimal
    total: Decimal
    food_items_text: str
