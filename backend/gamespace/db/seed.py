"""Device roster seeding."""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from gamespace.models import Device, DeviceType

logger = logging.getLogger(__name__)

# (type, how many, max players, hourly rate)
DEVICE_ROSTER = [
    (DeviceType.PS5, 5, 4, Decimal("120")),
    (DeviceType.PS4, 1, 2, Decimal("80")),
    (DeviceType.VR, 1, 1, Decimal("150")),
    (DeviceType.VR_RACING, 1, 1, Decimal("180")),
    (DeviceType.POOL, 1, 1, Decimal("100")),
    (DeviceType.FRAME, 1, 10, Decimal("100")),
    (DeviceType.RACING, 2, 1, Decimal("130")),
]


def seed_devices(db: Session) -> int:
    """Insert any roster devices that are missing. Returns how many were added."""
    existing = {(d.type, d.counter_no) for d in db.query(Device).all()}
    added = 0
    for device_type, count, max_players, hourly_rate in DEVICE_ROSTER:
        for counter_no in range(1, count + 1):
            if (device_type, counter_no) in existing:
                continue
            db.add(
                Device(
                    type=device_type,
                    counter_no=counter_no,
                    max_players=max_players,
                    hourly_rate=hourly_rate,
                )
            )
            added += 1
    if added:
        db.commit()
        logger.info(f"Seeded {added} devices")
    return added
