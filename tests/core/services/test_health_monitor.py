"""
Test suite for the HealthMonitor telemetry engine.

Run tests:
    pytest tests/core/services/test_health_monitor.py -v

Run with coverage:
    pytest tests/core/services/test_health_monitor.py --cov=app.core.services.health --cov-report=term-missing -v
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sqlalchemy import select

from app.core.db.models import HealthLog
from app.core.enums import AlertSeverity, ErrorType, HealthLogType
from app.core.exceptions.types import DatabaseException
from app.core.services.alerts import AlertContext
from app.core.services.health import (
    DAY_MS,
    HOURLY_REPORT_TITLE,
    HealthMonitor,
    format_uptime,
    render_report_fields,
    report_severity,
)
from app.core.services.ledger import WINDOW_MS


class TestHelpers:
    """Test suite for formatting helpers."""

    @pytest.mark.parametrize(
        "uptime_ms, expected",
        [
            (0, "0h 0m"),
            (59_999, "0h 0m"),
            (90 * 60_000, "1h 30m"),
            (49 * 3_600_000 + 5 * 60_000, "49h 5m"),
        ],
    )
    def test_format_uptime(self, uptime_ms, expected):
        assert format_uptime(uptime_ms) == expected

    @pytest.mark.parametrize(
        "errors, severity",
        [
            (0, AlertSeverity.GREEN),
            (1, AlertSeverity.AMBER),
            (10, AlertSeverity.AMBER),
            (11, AlertSeverity.RED),
        ],
    )
    def test_report_severity(self, errors, severity):
        assert report_severity(errors) is severity


class TestObservation:
    """Test suite for request, error and SMS observation."""

    def test_observe_request_counts_total_and_window(self, monitor, clock):
        monitor.observe_request("POST /otp/request", "10.0.0.1", {"user_agent": "curl"})
        monitor.observe_request("GET /health", "10.0.0.2")

        assert monitor.requests_total == 2
        assert monitor.ledger.count("requests") == 2
        entry = monitor.ledger.entries("requests")[0]
        assert entry.timestamp == clock.now
        assert entry.metadata == {"user_agent": "curl"}

    def test_window_slides_but_total_does_not(self, monitor, clock):
        """Requests older than an hour leave the window on the next write."""
        monitor.observe_request("GET /health", "a")
        clock.advance(WINDOW_MS + 1)
        monitor.observe_request("GET /health", "b")

        assert monitor.requests_total == 2
        assert monitor.ledger.count("requests") == 1

    async def test_non_critical_error_is_not_escalated(self, monitor, notifier):
        await monitor.observe_error(ErrorType.CLIENT_ERROR, "bad input")

        assert monitor.errors_total == 1
        assert monitor.errors_by_type == {"client_error": 1}
        notifier.send.assert_not_awaited()

    async def test_critical_error_is_escalated(self, monitor, notifier):
        context = AlertContext(endpoint="POST /otp/request", phone_number="+15551234567")

        await monitor.observe_error(ErrorType.API_OUTAGE, RuntimeError("gateway down"), context)

        notifier.send.assert_awaited_once()
        assert monitor.errors_by_type == {"api_outage": 1}

    async def test_observe_sms_success(self, monitor, notifier):
        await monitor.observe_sms(True)

        assert monitor.sms_sent == 1
        assert monitor.sms_failed == 0
        assert monitor.errors_total == 0
        notifier.send.assert_not_awaited()

    async def test_observe_sms_failure_records_and_escalates(self, monitor, notifier, clock):
        await monitor.observe_sms(False, "Invalid number")

        assert monitor.sms_failed == 1
        assert monitor.sms_last_error.message == "Invalid number"
        assert monitor.sms_last_error.timestamp == clock.now
        assert monitor.errors_by_type == {"sms_send_failure": 1}
        notifier.send.assert_awaited_once()

    async def test_observe_sms_failure_without_error(self, monitor):
        await monitor.observe_sms(False)

        assert monitor.sms_last_error.message == "Unknown error"


class TestProbes:
    """Test suite for outbound IP and store probes."""

    async def test_outbound_ip(self, monitor):
        assert await monitor.get_outbound_ip() == "203.0.113.7"

    async def test_outbound_ip_unknown_on_http_error(self, alerts, session_factory, clock):
        def fail(request):
            raise httpx.ConnectError("no route", request=request)

        monitor = HealthMonitor(
            alerts=alerts,
            session_factory=session_factory,
            clock=clock,
            transport=httpx.MockTransport(fail),
        )
        assert await monitor.get_outbound_ip() == "unknown"

    async def test_outbound_ip_unknown_on_bad_body(self, alerts, session_factory, clock):
        monitor = HealthMonitor(
            alerts=alerts,
            session_factory=session_factory,
            clock=clock,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"addr": "x"})),
        )
        assert await monitor.get_outbound_ip() == "unknown"

    async def test_store_connected(self, monitor):
        assert await monitor.check_store_status() == "connected"

    async def test_store_error(self, monitor):
        with patch(
            "app.core.services.health.health_log_db.get_by_conditions",
            new=AsyncMock(side_effect=DatabaseException("connection refused")),
        ):
            assert await monitor.check_store_status() == "error: connection refused"


class TestBuildReport:
    """Test suite for report snapshots."""

    async def test_empty_report(self, monitor, clock):
        clock.advance(2 * 3_600_000 + 15 * 60_000)

        report = await monitor.build_report()

        assert report["uptime"] == "2h 15m"
        assert report["outgoingIp"] == "203.0.113.7"
        assert report["services"] == {"store": "connected", "sms": "operational"}
        assert report["metrics"] == {
            "requests": {"total": 0, "lastHour": 0},
            "errors": {"total": 0, "lastHour": 0},
            "sms": {"sent": 0, "failed": 0},
        }
        assert report["topEndpoints"] == []
        assert report["sources"] == []
        assert report["recentErrors"] == []

    async def test_top_endpoints_ranked_with_first_seen_ties(self, monitor):
        for endpoint in ["A", "B", "B", "C", "D", "E", "F", "F", "F"]:
            monitor.observe_request(endpoint, "src")

        report = await monitor.build_report()

        assert [e["endpoint"] for e in report["topEndpoints"]] == ["F", "B", "A", "C", "D"]
        assert report["topEndpoints"][0]["count"] == 3

    async def test_sources_counted(self, monitor):
        monitor.observe_request("GET /health", "10.0.0.1")
        monitor.observe_request("GET /health", "10.0.0.2")
        monitor.observe_request("GET /health", "10.0.0.1")

        report = await monitor.build_report()

        assert report["sources"] == [
            {"source": "10.0.0.1", "count": 2},
            {"source": "10.0.0.2", "count": 1},
        ]

    async def test_recent_errors_are_last_five_truncated(self, monitor):
        for i in range(7):
            monitor.record_error(ErrorType.CLIENT_ERROR, f"error {i} " + "x" * 200)

        report = await monitor.build_report()

        recent = report["recentErrors"]
        assert len(recent) == 5
        assert recent[0]["message"].startswith("error 2 ")
        assert all(len(e["message"]) == 100 for e in recent)

    async def test_sms_warning_after_failure(self, monitor):
        await monitor.observe_sms(False, "Invalid number")

        report = await monitor.build_report()

        assert report["services"]["sms"] == "warning (last error: Invalid number)"
        assert report["metrics"]["sms"] == {"sent": 0, "failed": 1}

    async def test_build_report_does_not_mutate(self, monitor):
        monitor.observe_request("GET /health", "a")
        monitor.record_error(ErrorType.CLIENT_ERROR, "x")

        first = await monitor.build_report()
        second = await monitor.build_report()

        assert first["metrics"] == second["metrics"]
        assert monitor.ledger.count("requests") == 1
        assert monitor.ledger.count("errors") == 1


class TestHealthStatus:

    async def test_healthy(self, monitor):
        status = await monitor.health_status()

        assert status["status"] == "healthy"
        assert status["outboundIp"] == "203.0.113.7"
        assert status["serviceStatuses"]["store"] == "connected"

    async def test_degraded_when_store_fails(self, monitor):
        with patch.object(monitor, "check_store_status", new=AsyncMock(return_value="error: down")):
            status = await monitor.health_status()

        assert status["status"] == "degraded"


class TestEmitHourlyReport:
    """Test suite for the hourly report."""

    @pytest.mark.parametrize(
        "errors, severity",
        [(0, AlertSeverity.GREEN), (3, AlertSeverity.AMBER), (11, AlertSeverity.RED)],
    )
    async def test_severity_follows_last_hour_errors(self, monitor, notifier, errors, severity):
        for _ in range(errors):
            monitor.record_error(ErrorType.CLIENT_ERROR, "bad input")

        await monitor.emit_hourly_report()

        title, _description, sent_severity, _fields = notifier.send.await_args.args
        assert title == HOURLY_REPORT_TITLE
        assert sent_severity is severity

    async def test_report_is_persisted(self, monitor, session_factory):
        monitor.observe_request("GET /health", "a")

        report = await monitor.emit_hourly_report()

        async with session_factory() as session:
            logs = (await session.execute(select(HealthLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].type == HealthLogType.HOURLY_REPORT.value
        assert logs[0].data["metrics"] == report["metrics"]

    async def test_report_persisted_even_if_notification_fails(
        self, monitor, notifier, session_factory
    ):
        notifier.send.return_value = False

        await monitor.emit_hourly_report()

        async with session_factory() as session:
            logs = (await session.execute(select(HealthLog))).scalars().all()
        assert len(logs) == 1

    def test_render_report_fields_skips_empty_sections(self):
        report = {
            "outgoingIp": "unknown",
            "uptime": "0h 1m",
            "services": {"store": "connected", "sms": "operational"},
            "metrics": {
                "requests": {"total": 0, "lastHour": 0},
                "errors": {"total": 0, "lastHour": 0},
                "sms": {"sent": 2, "failed": 1},
            },
            "topEndpoints": [],
            "sources": [],
            "recentErrors": [],
        }

        fields = render_report_fields(report)

        assert len(fields) == 6
        assert fields[-1].value == "✅ 2 sent | ❌ 1 failed"


class TestPurgeOldLogs:
    """Test suite for health log retention."""

    async def test_purges_only_logs_past_retention(self, monitor, alerts, clock, session_factory):
        now = clock.now
        await alerts.persist(HealthLogType.HOURLY_REPORT, {"n": 1}, now - 31 * DAY_MS)
        await alerts.persist(HealthLogType.HOURLY_REPORT, {"n": 2}, now - 29 * DAY_MS)

        purged = await monitor.purge_old_logs(30)

        assert purged == 1
        async with session_factory() as session:
            remaining = (await session.execute(select(HealthLog))).scalars().all()
        assert [log.data["n"] for log in remaining] == [2]

    async def test_nothing_to_purge(self, monitor):
        assert await monitor.purge_old_logs(30) == 0

    async def test_store_failure_returns_zero(self, monitor):
        with patch(
            "app.core.services.health.health_log_db.purge_older_than",
            new=AsyncMock(side_effect=DatabaseException("locked")),
        ):
            assert await monitor.purge_old_logs(30) == 0
