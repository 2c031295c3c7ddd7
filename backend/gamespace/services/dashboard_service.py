"""Dashboard Service - floor status board and webhook controls."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gamespace.core.errors import ValidationError, WebhookDeliveryError
from gamespace.models import Device, GameSession, SessionStatus
from gamespace.services.session_service import SessionService
from gamespace.services.webhook_service import (
    WebhookNotifier,
    WebhookResult,
    build_session_payload,
    get_notifier,
)

logger = logging.getLogger(__name__)


class DeviceStatus:
    """A device together with what is running on it right now."""

    def __init__(self, device: Device, session: Optional[GameSession] = None):
        self.device = device
        self.session = session

    @property
    def current_status(self) -> SessionStatus:
        return SessionStatus.ACTIVE if self.session else SessionStatus.ENDED

    @property
    def current_session_id(self) -> Optional[int]:
        return self.session.id if self.session else None

    @property
    def start_time(self) -> Optional[datetime]:
        return self.session.start_time if self.session else None

    @property
    def player_count(self) -> int:
        return self.session.player_count if self.session else 0

    @property
    def token_no(self) -> Optional[int]:
        return self.session.token.token_no if self.session else None

    @property
    def order_number(self) -> Optional[str]:
        if self.session and self.session.order:
            return self.session.order.order_number
        return None


class DashboardService:
    def __init__(self, db: Session, notifier: Optional[WebhookNotifier] = None):
        self.db = db
        self.notifier = notifier or get_notifier()
        self.sessions = SessionService(db, notifier=self.notifier)

    def get_device_status(self) -> List[DeviceStatus]:
        active: Dict[int, GameSession] = {
            s.device_id: s
            for s in self.db.query(GameSession).filter(GameSession.status == SessionStatus.ACTIVE)
        }
        board = []
        for device in self.sessions.list_devices():
            session = active.get(device.id)
            board.append(DeviceStatus(device, session))
        return board

    def trigger_webhook(self, device_id: int, status: SessionStatus) -> WebhookResult:
        """Re-send a device's webhook by hand, e.g. after a display missed one.

        The requested status has to match what the device is actually doing.
        """
        device = self.sessions.get_device(device_id)
        session = self.sessions.active_session_for(device)
        current = SessionStatus.ACTIVE if session else SessionStatus.ENDED
        if status != current:
            raise ValidationError(
                f"Cannot trigger {status.value} webhook. Device is currently {current.value}."
            )

        url = self.notifier.router.resolve(device, status)
        if not url:
            raise ValidationError(f"No webhook URL configured for {device.label} {status.value} status")

        payload = build_session_payload(device, status, session, triggered_manually=True)
        result = self.notifier.post(url, payload)
        if not result.success:
            raise WebhookDeliveryError(result.message)

        logger.info(f"Manually triggered {status.value} webhook for {device.label}")
        return WebhookResult(
            True,
            f"Successfully triggered {status.value} webhook for {device.label}",
            url=url,
            status_code=result.status_code,
        )

    def get_webhook_config(self) -> dict:
        """Global URLs plus the device-specific overrides for every device."""
        router = self.notifier.router
        devices = []
        for device in self.sessions.list_devices():
            active_url = router.device_url(device, SessionStatus.ACTIVE)
            ended_url = router.device_url(device, SessionStatus.ENDED)
            devices.append({
                "device_id": device.id,
                "device_type": device.type.value,
                "counter_no": device.counter_no,
                "active_url": active_url,
                "ended_url": ended_url,
                "has_custom_webhooks": bool(active_url or ended_url),
            })
        return {
            "global_active_url": router.global_url(SessionStatus.ACTIVE),
            "global_ended_url": router.global_url(SessionStatus.ENDED),
            "devices": devices,
        }
