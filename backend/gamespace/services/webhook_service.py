"""
Device webhooks

Door displays and smart plugs next to each device listen for session
changes. Endpoints are configured per device and status, with a global
fallback per status:

    PS5_2_ACTIVE  -> only PS5 counter 2 going ACTIVE
    ACTIVE        -> any device going ACTIVE without its own route

Delivery is best effort. A failed POST is logged and reported back in the
result; it never undoes the session change that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import httpx

from gamespace.core.config import settings
from gamespace.models import Device, GameSession, SessionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of one delivery attempt."""

    success: bool
    message: str
    url: Optional[str] = None
    status_code: Optional[int] = None


class WebhookRouter:
    """Resolves the endpoint for a (device, status) pair from a route map."""

    def __init__(self, routes: Optional[Mapping[str, str]] = None):
        self.routes: Dict[str, str] = {k.upper(): v for k, v in (routes or {}).items() if v}

    @staticmethod
    def device_key(device_type: str, counter_no: int, status: SessionStatus) -> str:
        return f"{device_type}_{counter_no}_{status.value}".upper()

    def device_url(self, device: Device, status: SessionStatus) -> Optional[str]:
        return self.routes.get(self.device_key(device.type.value, device.counter_no, status))

    def global_url(self, status: SessionStatus) -> Optional[str]:
        return self.routes.get(status.value)

    def resolve(self, device: Device, status: SessionStatus) -> Optional[str]:
        url = self.device_url(device, status)
        if url:
            logger.debug(f"Using device-specific webhook for {device.label} {status.value}")
            return url
        url = self.global_url(status)
        if url:
            logger.debug(f"Using global {status.value} webhook for {device.label}")
        return url


def build_session_payload(
    device: Device,
    status: SessionStatus,
    session: Optional[GameSession] = None,
    triggered_manually: bool = False,
) -> Dict[str, Any]:
    """JSON body sent to webhook endpoints."""
    payload: Dict[str, Any] = {
        "deviceType": device.type.value,
        "deviceNumber": device.counter_no,
        "status": status.value,
        "sessionId": session.id if session else None,
        "playerCount": session.player_count if session else 0,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if triggered_manually:
        payload["triggeredManually"] = True
    return payload


class WebhookNotifier:
    """POSTs session changes to the configured endpoints."""

    def __init__(
        self,
        router: WebhookRouter,
        timeout: float = 5.0,
        retries: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.router = router
        self.timeout = timeout
        self.retries = retries
        self._transport = transport

    def post(self, url: str, payload: Dict[str, Any]) -> WebhookResult:
        last_error = ""
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(self.retries + 1):
                try:
                    resp = client.post(url, json=payload)
                except httpx.HTTPError as e:
                    last_error = f"{type(e).__name__}: {e}"
                    logger.warning(f"Webhook POST to {url} failed (attempt {attempt + 1}): {last_error}")
                    continue
                if resp.is_success:
                    return WebhookResult(True, "delivered", url=url, status_code=resp.status_code)
                last_error = f"HTTP {resp.status_code} {resp.text[:200]}"
                logger.warning(f"Webhook POST to {url} rejected (attempt {attempt + 1}): {last_error}")
                # Client errors will not improve on retry
                if resp.status_code < 500:
                    return WebhookResult(
                        False, f"Webhook failed: {last_error}", url=url, status_code=resp.status_code
                    )
        return WebhookResult(False, f"Webhook failed: {last_error}", url=url)

    def notify_session_change(
        self,
        device: Device,
        status: SessionStatus,
        session: Optional[GameSession] = None,
    ) -> WebhookResult:
        """Deliver a session change; never raises."""
        url = self.router.resolve(device, status)
        if not url:
            message = f"No webhook URL configured for {device.label} {status.value}"
            logger.info(message)
            return WebhookResult(False, message)

        payload = build_session_payload(device, status, session)
        try:
            result = self.post(url, payload)
        except Exception as e:
            logger.exception(f"Unexpected error sending {status.value} webhook for {device.label}")
            return WebhookResult(False, str(e) or "Failed to trigger webhook", url=url)

        if result.success:
            logger.info(f"Sent {status.value} webhook for {device.label}")
            return WebhookResult(
                True,
                f"Successfully triggered {status.value} webhook for {device.label}",
                url=url,
                status_code=result.status_code,
            )
        return result


def get_notifier() -> WebhookNotifier:
    """Notifier built from application settings."""
    return WebhookNotifier(
        WebhookRouter(settings.webhook_routes),
        timeout=settings.webhook_timeout_seconds,
        retries=settings.webhook_retries,
    )
