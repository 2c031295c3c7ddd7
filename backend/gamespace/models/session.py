"""Gameplay session model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from gamespace.core.timeutils import utcnow
from gamespace.db.base import Base, TimestampMixin
from gamespace.models.validators import money, non_negative, positive


class SessionStatus(str, Enum):
    """Status of a gameplay session. ENDED is terminal."""

    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class GameSession(Base, TimestampMixin):
    """One timed occupation of one device by a token."""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_device_status", "device_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    # Legacy sessions predate orders and have no order_id
    order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    device_id: Mapped[int] = mapped_column(
        ForeignKey("devices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    player_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, default="", nullable=True)
    frames_played: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[SessionStatus] = mapped_column(
        SQLEnum(SessionStatus), default=SessionStatus.ACTIVE, nullable=False, index=True
    )

    # Relationships
    device: Mapped["Device"] = relationship("Device", back_populates="sessions")
    token: Mapped["Token"] = relationship("Token", back_populates="sessions")
    order: Mapped[Optional["Order"]] = relationship("Order", back_populates="sessions")

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @validates("player_count")
    def _validate_player_count(self, key, value):
        return positive(key, value)

    @validates("duration_minutes", "frames_played")
    def _validate_counts(self, key, value):
        return non_negative(key, value)

    @validates("cost")
    def _validate_cost(self, key, value):
        return money(key, value)


from gamespace.models.device import Device  # noqa: E402
from gamespace.models.token import Token  # noqa: E402
from gamespace.models.order import Order  # noqa: E402
