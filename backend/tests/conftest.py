"""Pytest configuration and fixtures."""

import os

# Settings are read at import time; point them at throwaway values first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEVICES_ON_STARTUP", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("WEBHOOK_ROUTES", "{}")

from datetime import timedelta
from typing import Dict, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gamespace.core.timeutils import utcnow
from gamespace.db.base import Base
from gamespace.db.seed import seed_devices
from gamespace.db.session import get_db
from gamespace.main import app
# Import all models to ensure they're registered with Base.metadata
from gamespace.models import *  # noqa: F401,F403
from gamespace.models import Device, GameSession
from gamespace.services.billing_service import BillingService
from gamespace.services.order_service import OrderService
from gamespace.services.session_service import DeviceLockRegistry, SessionService
from gamespace.services.webhook_service import WebhookNotifier, WebhookRouter

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiting during tests to avoid flaky failures
    from gamespace.core.rate_limit import limiter
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def devices(db_session: Session) -> Dict[str, Device]:
    """The default roster, keyed by label ("PS5 1", "FRAME 1", ...)."""
    seed_devices(db_session)
    return {d.label: d for d in db_session.query(Device).all()}


@pytest.fixture
def webhook_calls() -> list:
    """Requests captured by the mock webhook transport."""
    return []


@pytest.fixture
def notifier(webhook_calls) -> WebhookNotifier:
    """Notifier with every status routed to a mock endpoint that records calls."""
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        return httpx.Response(200, json={"ok": True})

    router = WebhookRouter({
        "ACTIVE": "http://hooks.test/active",
        "ENDED": "http://hooks.test/ended",
    })
    return WebhookNotifier(router, timeout=1.0, retries=1, transport=httpx.MockTransport(handler))


@pytest.fixture
def session_service(db_session: Session, notifier: WebhookNotifier) -> SessionService:
    return SessionService(db_session, notifier=notifier, locks=DeviceLockRegistry(timeout=0.5))


@pytest.fixture
def order_service(db_session: Session) -> OrderService:
    return OrderService(db_session)


@pytest.fixture
def billing_service(db_session: Session, notifier: WebhookNotifier) -> BillingService:
    return BillingService(db_session, notifier=notifier)


@pytest.fixture
def backdate(db_session: Session):
    """Pretend a session started ``minutes`` ago."""
    def _backdate(session: GameSession, minutes: int) -> GameSession:
        session.start_time = utcnow() - timedelta(minutes=minutes)
        db_session.commit()
        db_session.refresh(session)
        return session
    return _backdate
