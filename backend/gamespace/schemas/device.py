"""Device schemas."""

from decimal import Decimal

from pydantic import BaseModel

from gamespace.models.device import DeviceType


class DeviceResponse(BaseModel):
    """Device response schema."""

    id: int
    type: DeviceType
    counter_no: int
    max_players: int
    hourly_rate: Decimal
    label: str

    model_config = {"from_attributes": True}
