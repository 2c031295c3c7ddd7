"""Gameplay session schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from gamespace.models.session import SessionStatus
from gamespace.schemas.device import DeviceResponse


class SessionStart(BaseModel):
    """Start a session on a device for a token."""

    device_id: int
    player_count: int = Field(ge=1)
    token_no: int = Field(ge=1)
    order_id: Optional[int] = None
    comments: Optional[str] = None


class SessionCommentsUpdate(BaseModel):
    comments: str = ""


class SessionPlayersUpdate(BaseModel):
    player_count: int = Field(ge=1)


class SessionFramesUpdate(BaseModel):
    frames_played: int = Field(ge=0)
    comments: Optional[str] = None


class SessionResponse(BaseModel):
    """Session response schema."""

    id: int
    token_id: int
    order_id: Optional[int] = None
    device_id: int
    player_count: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    cost: Decimal
    comments: Optional[str] = None
    frames_played: Optional[int] = None
    status: SessionStatus
    device: Optional[DeviceResponse] = None

    model_config = {"from_attributes": True}
