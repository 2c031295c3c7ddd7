"""Order models: a visit's billing group and its food line items."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from gamespace.core.timeutils import utcnow
from gamespace.db.base import Base, TimestampMixin
from gamespace.models.validators import money, non_negative


class OrderStatus(str, Enum):
    """Status of an order."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Order(Base, TimestampMixin):
    """Groups the sessions and food of one token visit."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.ACTIVE, nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    token: Mapped["Token"] = relationship("Token", back_populates="orders")
    sessions: Mapped[List["GameSession"]] = relationship(
        "GameSession", back_populates="order", order_by="desc(GameSession.start_time)"
    )
    food_items: Mapped[List["FoodLineItem"]] = relationship(
        "FoodLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="FoodLineItem.position",
    )
    bills: Mapped[List["Bill"]] = relationship("Bill", back_populates="order")

    @property
    def food_subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.food_items), Decimal("0.00"))


class FoodLineItem(Base):
    """A food or drink line on an order, kept in entry order."""

    __tablename__ = "order_food_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    order: Mapped["Order"] = relationship("Order", back_populates="food_items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    @validates("unit_price")
    def _validate_price(self, key, value):
        return money(key, value)

    @validates("quantity", "position")
    def _validate_counts(self, key, value):
        return non_negative(key, value)


from gamespace.models.token import Token  # noqa: E402
from gamespace.models.session import GameSession  # noqa: E402
from gamespace.models.bill import Bill  # noqa: E402
