"""Dashboard routes: device board and webhook controls."""

from typing import List

from fastapi import APIRouter, Request

from gamespace.core.rate_limit import limiter
from gamespace.core.timeutils import utcnow
from gamespace.db.session import DbSession
from gamespace.schemas.dashboard import (
    DeviceStatusResponse,
    WebhookConfigResponse,
    WebhookTriggerRequest,
    WebhookTriggerResponse,
)
from gamespace.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/dashboard/devices", response_model=List[DeviceStatusResponse])
@limiter.limit("60/minute")
def get_device_status(request: Request, db: DbSession):
    return DashboardService(db).get_device_status()


@router.post("/dashboard/webhooks/trigger", response_model=WebhookTriggerResponse)
@limiter.limit("10/minute")
def trigger_webhook(request: Request, db: DbSession, data: WebhookTriggerRequest):
    result = DashboardService(db).trigger_webhook(data.device_id, data.status)
    return WebhookTriggerResponse(success=result.success, message=result.message, timestamp=utcnow())


@router.get("/dashboard/webhooks/config", response_model=WebhookConfigResponse)
@limiter.limit("30/minute")
def get_webhook_config(request: Request, db: DbSession):
    return DashboardService(db).get_webhook_config()
