"""Customer model, attached to bills that are left DUE."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gamespace.db.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    """A regular who may run a tab."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    bills: Mapped[List["Bill"]] = relationship("Bill", back_populates="customer")

    @property
    def due_bills(self) -> List["Bill"]:
        return [b for b in self.bills if b.status == PaymentStatus.DUE]


from gamespace.models.bill import Bill, PaymentStatus  # noqa: E402
