"""
Pytest configuration and core fixtures.

Every test gets its own in-memory SQLite database, its own health monitor
with a controllable clock, and a stubbed SMS gateway / notification channel.
"""

import os

# Must be set before any app module reads settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["SENTRY_DSN"] = ""
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""
os.environ["ADMIN_PHONE"] = ""
os.environ["HEALTH_API_KEY"] = ""

import json
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import init_db
from app.core.services.alerts import AlertDispatcher
from app.core.services.health import HealthMonitor
from app.core.services.sms import SMSResult, SMSService

SMS_ACCEPTED = {"statusCode": "200", "status": "Success", "responseResult": "Message sent"}
SMS_REJECTED = {"statusCode": "400", "status": "Failed", "responseResult": "Invalid number"}


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class GatewayStub:
    """Records SMS gateway requests and answers with ``self.body``."""

    def __init__(self):
        self.requests: list[dict] = []
        self.body: dict = dict(SMS_ACCEPTED)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        return httpx.Response(200, json=self.body)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> MagicMock:
    """Stand-in for NotificationService."""
    mock = MagicMock()
    mock.send = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def alert_sms() -> MagicMock:
    """Stand-in for the SMS client used by the alert dispatcher."""
    mock = MagicMock()
    mock.send_alert = AsyncMock(return_value=SMSResult(success=True))
    return mock


@pytest.fixture
def alerts(session_factory, notifier, alert_sms, clock) -> AlertDispatcher:
    return AlertDispatcher(
        session_factory=session_factory,
        notifier=notifier,
        sms=alert_sms,
        admin_phone="",
        clock=clock,
    )


@pytest.fixture
def ip_transport() -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(200, json={"ip": "203.0.113.7"}))


@pytest.fixture
def monitor(alerts, session_factory, clock, ip_transport) -> HealthMonitor:
    return HealthMonitor(
        alerts=alerts,
        session_factory=session_factory,
        clock=clock,
        transport=ip_transport,
    )


@pytest.fixture
async def sms_gateway() -> AsyncGenerator[GatewayStub, None]:
    """Bind SMSService to a mock gateway for the duration of a test."""
    stub = GatewayStub()
    await SMSService.init(
        api_url="https://sms.test/api/SmsSending/SMS",
        username="otp-user",
        api_key="otp-key",
        sender_name="OTPGW",
        timeout_seconds=1.0,
        transport=httpx.MockTransport(stub),
    )
    yield stub
    await SMSService.aclose()
    SMSService._reset()


@pytest.fixture
async def client(session_factory, monitor) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, bound to the per-test database and monitor."""
    from app.core.dependencies import get_async_session
    from app.main import app

    async def override_get_async_session():
        async with session_factory() as session:
            yield session

    original_monitor = app.state.health_monitor
    app.dependency_overrides[get_async_session] = override_get_async_session
    app.state.health_monitor = monitor

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.health_monitor = original_monitor
