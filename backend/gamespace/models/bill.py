"""Bill model: the payment record for an order or a legacy token."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from gamespace.core.timeutils import utcnow
from gamespace.db.base import Base
from gamespace.models.validators import money


class PaymentStatus(str, Enum):
    """Payment state of a bill."""

    PENDING = "PENDING"
    PAID = "PAID"
    DUE = "DUE"


class Bill(Base):
    """Snapshot of what a visit owes, plus how and when it was settled."""

    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(primary_key=True)
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    customer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # Cashier override; the computed amount above is kept as-is
    corrected_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    amount_received: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True
    )
    generated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Relationships
    token: Mapped["Token"] = relationship("Token", back_populates="bills")
    order: Mapped[Optional["Order"]] = relationship("Order", back_populates="bills")
    customer: Mapped[Optional["Customer"]] = relationship("Customer", back_populates="bills")

    @property
    def payable_amount(self) -> Decimal:
        if self.corrected_amount is not None:
            return self.corrected_amount
        return self.amount

    @validates("amount", "corrected_amount", "amount_received")
    def _validate_money(self, key, value):
        return money(key, value)


from gamespace.models.token import Token  # noqa: E402
from gamespace.models.order import Order  # noqa: E402
from gamespace.models.customer import Customer  # noqa: E402
