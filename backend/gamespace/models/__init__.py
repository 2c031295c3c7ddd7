"""SQLAlchemy models."""

from gamespace.models.device import Device, DeviceType, SHARED_TABLE_TYPES
from gamespace.models.token import Token
from gamespace.models.session import GameSession, SessionStatus
from gamespace.models.order import Order, OrderStatus, FoodLineItem
from gamespace.models.bill import Bill, PaymentStatus
from gamespace.models.customer import Customer

__all__ = [
    "Device",
    "DeviceType",
    "SHARED_TABLE_TYPES",
    "Token",
    "GameSession",
    "SessionStatus",
    "Order",
    "OrderStatus",
    "FoodLineItem",
    "Bill",
    "PaymentStatus",
    "Customer",
]
