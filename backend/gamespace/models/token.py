"""Physical claim tokens handed to customers."""

from __future__ import annotations

from typing import List

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gamespace.db.base import Base, TimestampMixin


class Token(Base, TimestampMixin):
    """One customer visit. Token numbers restart every business day."""

    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(primary_key=True)
    token_no: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    sessions: Mapped[List["GameSession"]] = relationship(
        "GameSession", back_populates="token", order_by="desc(GameSession.start_time)"
    )
    orders: Mapped[List["Order"]] = relationship(
        "Order", back_populates="token", order_by="desc(Order.start_time)"
    )
    bills: Mapped[List["Bill"]] = relationship("Bill", back_populates="token")


from gamespace.models.session import GameSession  # noqa: E402
from gamespace.models.order import Order  # noqa: E402
from gamespace.models.bill import Bill  # noqa: E402
