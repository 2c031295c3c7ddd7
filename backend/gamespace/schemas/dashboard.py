"""Dashboard schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from gamespace.models.session import SessionStatus
from gamespace.schemas.device import DeviceResponse


class DeviceStatusResponse(BaseModel):
    """A device and whatever is running on it."""

    device: DeviceResponse
    current_status: SessionStatus
    current_session_id: Optional[int] = None
    start_time: Optional[datetime] = None
    player_count: int = 0
    token_no: Optional[int] = None
    order_number: Optional[str] = None

    model_config = {"from_attributes": True}


class WebhookTriggerRequest(BaseModel):
    device_id: int
    status: SessionStatus


class WebhookTriggerResponse(BaseModel):
    success: bool
    message: str
    timestamp: datetime


class DeviceWebhookConfig(BaseModel):
    device_id: int
    device_type: str
    counter_no: int
    active_url: Optional[str] = None
    ended_url: Optional[str] = None
    has_custom_webhooks: bool


class WebhookConfigResponse(BaseModel):
    global_active_url: Optional[str] = None
    global_ended_url: Optional[str] = None
    devices: List[DeviceWebhookConfig]
