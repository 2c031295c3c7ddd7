"""Session Service - opens and closes gameplay sessions on devices.

Lifecycle: ACTIVE -> ENDED (terminal).

Opening a session checks, in order:
1. the device exists and can take that many players
2. the device is free (Pool and Frame share one table, so either being busy
   blocks both)
3. the token is not already tied to another ACTIVE order

The checks and the insert run under a per-device lock so two counters
starting the same console at once cannot both succeed within this process.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from gamespace.core.config import settings
from gamespace.core.errors import ConflictError, NotFoundError, ValidationError
from gamespace.core.timeutils import start_of_business_day, utcnow
from gamespace.models import (
    SHARED_TABLE_TYPES,
    Device,
    DeviceType,
    GameSession,
    Order,
    OrderStatus,
    SessionStatus,
    Token,
)
from gamespace.models.validators import to_money
from gamespace.services.order_service import OrderService
from gamespace.services.pricing_service import (
    calculate_duration,
    calculate_price,
)
from gamespace.services.webhook_service import WebhookNotifier, get_notifier

logger = logging.getLogger(__name__)

SHARED_TABLE_LOCK_KEY = "SHARED_TABLE"


class DeviceLockRegistry:
    """In-process locks keyed by device; Pool and Frame share a key."""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @staticmethod
    def key_for(device: Device) -> str:
        if device.type in SHARED_TABLE_TYPES:
            return SHARED_TABLE_LOCK_KEY
        return f"device:{device.id}"

    def _lock(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, device: Device) -> Iterator[None]:
        lock = self._lock(self.key_for(device))
        if not lock.acquire(timeout=self.timeout):
            raise ConflictError(f"{device.label} is busy, try again")
        try:
            yield
        finally:
            lock.release()


device_locks = DeviceLockRegistry(timeout=settings.device_lock_timeout_seconds)


class SessionService:
    """Session lifecycle against the device roster."""

    def __init__(
        self,
        db: Session,
        notifier: Optional[WebhookNotifier] = None,
        locks: Optional[DeviceLockRegistry] = None,
    ):
        self.db = db
        self.notifier = notifier or get_notifier()
        self.locks = locks or device_locks
        self.orders = OrderService(db)

    # ===== LOOKUPS =====

    def get_device(self, device_id: int) -> Device:
        device = self.db.query(Device).filter(Device.id == device_id).first()
        if not device:
            raise NotFoundError("Device", device_id)
        return device

    def get_session(self, session_id: int) -> GameSession:
        session = self.db.query(GameSession).filter(GameSession.id == session_id).first()
        if not session:
            raise NotFoundError("Session", session_id)
        return session

    def list_devices(self) -> List[Device]:
        return self.db.query(Device).order_by(Device.type, Device.counter_no).all()

    def _busy_device_ids(self) -> set:
        rows = (
            self.db.query(GameSession.device_id)
            .filter(GameSession.status == SessionStatus.ACTIVE)
            .all()
        )
        return {row[0] for row in rows}

    def get_available_devices(self) -> List[Device]:
        """Devices without an ACTIVE session; a busy Pool hides Frame and vice versa."""
        devices = self.list_devices()
        busy = self._busy_device_ids()
        shared_busy = any(d.id in busy and d.uses_shared_table for d in devices)
        return [
            d for d in devices
            if d.id not in busy and not (shared_busy and d.uses_shared_table)
        ]

    def active_session_for(self, device: Device) -> Optional[GameSession]:
        return (
            self.db.query(GameSession)
            .filter(GameSession.device_id == device.id, GameSession.status == SessionStatus.ACTIVE)
            .first()
        )

    def list_today_tokens(self, now: Optional[datetime] = None) -> List[Token]:
        """Tokens issued today, newest first, with their sessions, orders and bills."""
        day_start = start_of_business_day(now)
        return (
            self.db.query(Token)
            .filter(Token.created_at >= day_start)
            .order_by(Token.created_at.desc())
            .all()
        )

    def list_sessions(self, limit: int = 200) -> List[GameSession]:
        return (
            self.db.query(GameSession)
            .order_by(GameSession.start_time.desc())
            .limit(limit)
            .all()
        )

    def find_today_token(self, token_no: int, now: Optional[datetime] = None) -> Optional[Token]:
        day_start = start_of_business_day(now)
        return (
            self.db.query(Token)
            .filter(Token.token_no == token_no, Token.created_at >= day_start)
            .order_by(Token.created_at.desc())
            .first()
        )

    # ===== OPEN =====

    def _check_device_free(self, device: Device) -> None:
        if self.active_session_for(device):
            raise ConflictError(f"{device.label} is already in use")
        if device.uses_shared_table:
            other = (
                self.db.query(GameSession)
                .join(Device, GameSession.device_id == Device.id)
                .filter(
                    GameSession.status == SessionStatus.ACTIVE,
                    Device.type.in_(list(SHARED_TABLE_TYPES)),
                )
                .first()
            )
            if other:
                raise ConflictError(
                    f"Pool and Frame share a table; {other.device.label} is already in use"
                )

    def _resolve_order(self, token_no: int, order_id: Optional[int]) -> Order:
        if order_id is not None:
            order = self.orders.get_order(order_id)
            if order.status != OrderStatus.ACTIVE:
                raise ValidationError(
                    f"Order {order.order_number} is {order.status.value}, not ACTIVE"
                )
            return order

        token = self.find_today_token(token_no)
        if token is not None:
            active = next((o for o in token.orders if o.status == OrderStatus.ACTIVE), None)
            if active is not None:
                raise ConflictError(
                    f"Token {token_no} is already bound to active order {active.order_number}"
                )
        else:
            token = Token(token_no=token_no)
            self.db.add(token)
            self.db.flush()
            logger.info(f"Issued token {token_no}")
        return self.orders.build_order(token)

    def start_session(
        self,
        device_id: int,
        player_count: int,
        token_no: int,
        order_id: Optional[int] = None,
        comments: Optional[str] = None,
    ) -> GameSession:
        device = self.get_device(device_id)
        if player_count < 1:
            raise ValidationError("Player count must be at least 1")
        if player_count > device.max_players:
            raise ValidationError(
                f"{device.label} allows at most {device.max_players} players, got {player_count}"
            )

        with self.locks.hold(device):
            try:
                self._check_device_free(device)
                order = self._resolve_order(token_no, order_id)
                session = GameSession(
                    device=device,
                    token=order.token,
                    order=order,
                    player_count=player_count,
                    start_time=utcnow(),
                    status=SessionStatus.ACTIVE,
                    comments=comments or "",
                )
                if device.type == DeviceType.FRAME:
                    session.cost = calculate_price(DeviceType.FRAME, player_count, 0)
                self.db.add(session)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(session)
        logger.info(
            f"Started session {session.id} on {device.label} for token {session.token.token_no} "
            f"({player_count} players, order {session.order.order_number})"
        )
        self.notifier.notify_session_change(device, SessionStatus.ACTIVE, session)
        return session

    # ===== CLOSE =====

    def close_session(self, session: GameSession, now: Optional[datetime] = None) -> Decimal:
        """Stamp end time, duration and cost on an ACTIVE session. Does not commit."""
        now = now or utcnow()
        device = session.device
        duration = calculate_duration(session.start_time, now)
        cost = calculate_price(device.type, session.player_count, duration)
        session.end_time = now
        session.duration_minutes = duration
        session.cost = cost
        session.status = SessionStatus.ENDED
        logger.info(f"Closed session {session.id} on {device.label}: {duration} min, {to_money(cost)}")
        return session.cost

    def end_session(self, session_id: int) -> GameSession:
        session = self.get_session(session_id)
        if not session.is_active:
            raise ValidationError(f"Session {session_id} has already ended")
        try:
            self.close_session(session)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(session)
        self.notifier.notify_session_change(session.device, SessionStatus.ENDED, session)
        return session

    # ===== EDITS =====

    def _active_frame_session(self, session_id: int) -> GameSession:
        session = self.get_session(session_id)
        if not session.is_active:
            raise ValidationError(f"Session {session_id} has already ended")
        if session.device.type != DeviceType.FRAME:
            raise ValidationError("Only Frame sessions can be edited this way")
        return session

    def update_player_count(self, session_id: int, player_count: int) -> GameSession:
        session = self._active_frame_session(session_id)
        max_players = session.device.max_players
        if player_count < 1 or player_count > max_players:
            raise ValidationError(f"Player count must be between 1 and {max_players}")
        try:
            session.player_count = player_count
            session.cost = calculate_price(DeviceType.FRAME, player_count, 0)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(session)
        return session

    def update_frames_played(
        self, session_id: int, frames: int, comments: Optional[str] = None
    ) -> GameSession:
        session = self._active_frame_session(session_id)
        if frames < 0:
            raise ValidationError("Frames played cannot be negative")
        try:
            session.frames_played = frames
            if comments is not None:
                session.comments = comments
            session.cost = calculate_price(DeviceType.FRAME, session.player_count, 0)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(session)
        return session

    def update_comments(self, session_id: int, comments: str) -> GameSession:
        session = self.get_session(session_id)
        try:
            session.comments = comments
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(session)
        return session
