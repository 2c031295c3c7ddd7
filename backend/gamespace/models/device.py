"""Device reference data: consoles, simulators and tables on the floor."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List

from sqlalchemy import Enum as SQLEnum, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from gamespace.db.base import Base
from gamespace.models.validators import money, positive


class DeviceType(str, Enum):
    """Kinds of device the cafe rents out."""

    PS5 = "PS5"
    PS4 = "PS4"
    VR = "VR"
    VR_RACING = "VR_RACING"
    POOL = "POOL"
    FRAME = "FRAME"
    RACING = "RACING"


# Pool and Frame are played on the same physical table
SHARED_TABLE_TYPES = frozenset({DeviceType.POOL, DeviceType.FRAME})


class Device(Base):
    """A single rentable device, identified by type and counter number."""

    __tablename__ = "devices"
    __table_args__ = (UniqueConstraint("type", "counter_no", name="uq_devices_type_counter_no"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[DeviceType] = mapped_column(SQLEnum(DeviceType), nullable=False, index=True)
    counter_no: Mapped[int] = mapped_column(Integer, nullable=False)
    max_players: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    sessions: Mapped[List["GameSession"]] = relationship("GameSession", back_populates="device")

    @property
    def uses_shared_table(self) -> bool:
        return self.type in SHARED_TABLE_TYPES

    @property
    def label(self) -> str:
        return f"{self.type.value} {self.counter_no}"

    @validates("max_players", "counter_no")
    def _validate_positive(self, key, value):
        return positive(key, value)

    @validates("hourly_rate")
    def _validate_money(self, key, value):
        return money(key, value)


from gamespace.models.session import GameSession  # noqa: E402
