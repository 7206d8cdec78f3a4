"""
Test suite for AlertDispatcher.

Run tests:
    pytest tests/core/services/test_alerts.py -v
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from app.core.db.models import HealthLog
from app.core.enums import AlertSeverity, ErrorType, HealthLogType
from app.core.exceptions.types import DatabaseException, SMSTimeoutException
from app.core.services.alerts import (
    CRITICAL_ALERT_TITLE,
    AlertContext,
    AlertDispatcher,
    error_message,
)
from app.core.services.sms import SMSResult


@pytest.fixture
def admin_alerts(session_factory, notifier, alert_sms, clock) -> AlertDispatcher:
    return AlertDispatcher(
        session_factory=session_factory,
        notifier=notifier,
        sms=alert_sms,
        admin_phone="+15550000000",
        clock=clock,
    )


async def _logs(session_factory) -> list[HealthLog]:
    async with session_factory() as session:
        return list((await session.execute(select(HealthLog))).scalars().all())


class TestClassification:

    @pytest.mark.parametrize(
        "error_type",
        [
            ErrorType.SMS_SEND_FAILURE,
            ErrorType.STORE_CONNECTION_ERROR,
            ErrorType.API_OUTAGE,
            ErrorType.SERVICE_UNAVAILABLE,
        ],
    )
    def test_critical_types(self, error_type):
        assert AlertDispatcher.is_critical(error_type.value)

    @pytest.mark.parametrize("error_type", ["client_error", "server_error", "anything"])
    def test_non_critical_types(self, error_type):
        assert not AlertDispatcher.is_critical(error_type)

    def test_error_message(self):
        assert error_message("plain") == "plain"
        assert error_message(ValueError("boom")) == "boom"
        assert error_message(ValueError()) == "ValueError"


class TestAlertContext:

    def test_to_dict_drops_empty_and_masks_phone(self):
        context = AlertContext(endpoint="POST /otp/request", phone_number="+15551234567")

        assert context.to_dict() == {
            "endpoint": "POST /otp/request",
            "phone_number": "********4567",
        }


class TestRaiseCriticalAlert:
    """Test suite for the critical alert fan-out."""

    async def test_sends_red_notification(self, alerts, notifier):
        await alerts.raise_critical_alert(
            "sms_send_failure",
            "Invalid number",
            AlertContext(endpoint="POST /otp/request", phone_number="+15551234567"),
        )

        title, _description, severity, fields = notifier.send.await_args.args
        assert title == CRITICAL_ALERT_TITLE
        assert severity is AlertSeverity.RED
        by_name = {f.name: f.value for f in fields}
        assert by_name["Error Type"] == "sms_send_failure"
        assert by_name["Error Message"] == "Invalid number"
        assert json.loads(by_name["Context"])["phone_number"] == "********4567"

    async def test_persists_critical_alert_log(self, alerts, session_factory, clock):
        await alerts.raise_critical_alert("api_outage", RuntimeError("gateway 503"))

        logs = await _logs(session_factory)
        assert len(logs) == 1
        assert logs[0].type == HealthLogType.CRITICAL_ALERT.value
        assert logs[0].timestamp == clock.now
        assert logs[0].data == {
            "errorType": "api_outage",
            "message": "gateway 503",
            "context": {},
            "timestamp": clock.now,
        }

    async def test_no_admin_sms_without_phone(self, alerts, alert_sms):
        await alerts.raise_critical_alert("api_outage", "down")

        alert_sms.send_alert.assert_not_awaited()

    async def test_admin_sms_sent_when_configured(self, admin_alerts, alert_sms):
        await admin_alerts.raise_critical_alert("store_connection_error", "refused")
        await admin_alerts.wait_pending()

        alert_sms.send_alert.assert_awaited_once_with(
            "+15550000000", "[OTP Server Alert] store_connection_error: refused"
        )

    async def test_admin_sms_failure_is_swallowed(
        self, admin_alerts, alert_sms, session_factory
    ):
        """An SMS failure still lets the alert be persisted."""
        alert_sms.send_alert.side_effect = SMSTimeoutException()

        await admin_alerts.raise_critical_alert("api_outage", "down")
        await admin_alerts.wait_pending()

        assert len(await _logs(session_factory)) == 1

    async def test_admin_sms_rejection_is_swallowed(self, admin_alerts, alert_sms):
        alert_sms.send_alert.return_value = SMSResult(success=False, reason="no credit")

        with patch("app.core.services.alerts.health_logger") as logger:
            await admin_alerts.raise_critical_alert("api_outage", "down")
            await admin_alerts.wait_pending()

        logger.error.assert_any_call("Failed to send SMS alert: no credit")

    async def test_admin_sms_does_not_block_caller(self, admin_alerts, alert_sms, session_factory):
        release = asyncio.Event()

        async def held(phone_number, text):
            await release.wait()
            return SMSResult(success=True)

        alert_sms.send_alert.side_effect = held

        await admin_alerts.raise_critical_alert("api_outage", "down")

        # Returned with the SMS still in flight and the alert already persisted
        assert len(admin_alerts._pending) == 1
        assert len(await _logs(session_factory)) == 1

        release.set()
        await admin_alerts.wait_pending()
        assert admin_alerts._pending == set()
        alert_sms.send_alert.assert_awaited_once()

    async def test_unexpected_admin_sms_error_is_logged(self, admin_alerts, alert_sms):
        alert_sms.send_alert.side_effect = RuntimeError("socket closed")

        with patch("app.core.services.alerts.health_logger") as logger:
            await admin_alerts.raise_critical_alert("api_outage", "down")
            await admin_alerts.wait_pending()

        logger.error.assert_any_call("Failed to send SMS alert: RuntimeError - socket closed")
        assert admin_alerts._pending == set()

    async def test_wait_pending_without_tasks(self, alerts):
        await alerts.wait_pending()

    async def test_notification_failure_does_not_stop_persist(
        self, alerts, notifier, session_factory
    ):
        notifier.send.return_value = False

        await alerts.raise_critical_alert("api_outage", "down")

        assert len(await _logs(session_factory)) == 1

    async def test_store_failure_is_swallowed(self, alerts, notifier):
        with patch(
            "app.core.services.alerts.health_log_db.log",
            new=AsyncMock(side_effect=DatabaseException("disk full")),
        ):
            await alerts.raise_critical_alert("api_outage", "down")

        notifier.send.assert_awaited_once()


class TestPersist:

    async def test_persist_returns_false_on_store_error(self, alerts):
        with patch(
            "app.core.services.alerts.health_log_db.log",
            new=AsyncMock(side_effect=DatabaseException("disk full")),
        ):
            assert await alerts.persist(HealthLogType.HOURLY_REPORT, {}, 0) is False

    async def test_send_report_returns_notifier_outcome(self, alerts, notifier, session_factory):
        notifier.send.return_value = False

        sent = await alerts.send_report("t", "d", AlertSeverity.GREEN, [], {"ok": True})

        assert sent is False
        logs = await _logs(session_factory)
        assert logs[0].type == HealthLogType.HOURLY_REPORT.value
        assert logs[0].data == {"ok": True}
