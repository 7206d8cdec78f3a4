"""
Health telemetry engine.

A ``HealthMonitor`` is one owned aggregate of process-wide metrics: request
and error sliding windows (see ``TimeWindowLedger``), monotonic totals and
SMS delivery counters. The application creates one instance at startup and
passes it to request handlers and scheduled jobs; tests build their own.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
import threading
from typing import Any, Callable

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings, health_logger
from app.core.db.crud import health_log_db
from app.core.enums import AlertSeverity, ErrorType
from app.core.exceptions.types import AppException
from app.core.services.alerts import AlertContext, AlertDispatcher, error_message
from app.core.services.ledger import ErrorEntry, RequestEntry, TimeWindowLedger
from app.core.services.notification import NotificationField
from app.core.utils import now_ms, truncate

REQUESTS_WINDOW = "requests"
ERRORS_WINDOW = "errors"

TOP_ENDPOINTS_LIMIT = 5
RECENT_ERRORS_LIMIT = 5
RECENT_ERROR_MESSAGE_LIMIT = 100

# Last-hour error count above which the report turns red
RED_ERROR_THRESHOLD = 10

HOURLY_REPORT_TITLE = "📊 Hourly Health Report"
UNKNOWN_IP = "unknown"
STORE_CONNECTED = "connected"

DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class SMSFailure:
    message: str
    timestamp: int


def format_uptime(uptime_ms: int) -> str:
    """Render a duration as ``"<hours>h <minutes>m"``."""
    hours = uptime_ms // 3_600_000
    minutes = (uptime_ms % 3_600_000) // 60_000
    return f"{hours}h {minutes}m"


def to_iso(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def report_severity(errors_last_hour: int) -> AlertSeverity:
    """Red above 10 errors in the last hour, amber for any error, else green."""
    if errors_last_hour > RED_ERROR_THRESHOLD:
        return AlertSeverity.RED
    if errors_last_hour > 0:
        return AlertSeverity.AMBER
    return AlertSeverity.GREEN


def render_report_fields(report: dict[str, Any]) -> list[NotificationField]:
    """Notification fields for an hourly report."""
    metrics = report["metrics"]
    fields = [
        NotificationField("🌐 Outgoing IP", report["outgoingIp"], inline=True),
        NotificationField("⏱️ Uptime", report["uptime"], inline=True),
        NotificationField(
            "📊 Requests (Last Hour)",
            f"{metrics['requests']['lastHour']} requests",
            inline=True,
        ),
        NotificationField("🗄️ Store", report["services"]["store"], inline=True),
        NotificationField("📱 SMS Service", report["services"]["sms"], inline=True),
        NotificationField(
            "📤 SMS Stats",
            f"✅ {metrics['sms']['sent']} sent | ❌ {metrics['sms']['failed']} failed",
            inline=True,
        ),
    ]

    if report["topEndpoints"]:
        fields.append(
            NotificationField(
                "🎯 Top Endpoints",
                "\n".join(f"`{e['endpoint']}`: {e['count']}" for e in report["topEndpoints"]),
            )
        )
    if report["sources"]:
        fields.append(
            NotificationField(
                "📍 Request Sources",
                "\n".join(f"{s['source']}: {s['count']}" for s in report["sources"]),
            )
        )
    if report["recentErrors"]:
        fields.append(
            NotificationField(
                "⚠️ Recent Errors",
                "\n".join(f"[{e['type']}] {e['message']}" for e in report["recentErrors"]),
            )
        )
    return fields


class HealthMonitor:
    """
    Process-wide health metrics plus reporting.

    Args:
        alerts: Dispatcher used for reports and critical alerts.
        session_factory: Factory for sessions used by the store probe and purge.
        clock: Epoch-millisecond clock.
        ledger: Sliding-window storage. A fresh one by default.
        ip_probe_url: "What is my IP" endpoint returning ``{"ip": ...}``.
        probe_timeout: Timeout for the IP probe, in seconds.
        transport: Custom HTTP transport for the IP probe (tests).
    """

    def __init__(
        self,
        alerts: AlertDispatcher,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], int] = now_ms,
        ledger: TimeWindowLedger | None = None,
        ip_probe_url: str = settings.IP_PROBE_URL,
        probe_timeout: float = settings.HEALTH_PROBE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.alerts = alerts
        self.session_factory = session_factory
        self.clock = clock
        self.ledger = ledger or TimeWindowLedger()
        self.ip_probe_url = ip_probe_url
        self.probe_timeout = probe_timeout
        self.transport = transport

        self.start_time = clock()
        self.requests_total = 0
        self.errors_total = 0
        self.errors_by_type: dict[str, int] = {}
        self.sms_sent = 0
        self.sms_failed = 0
        self.sms_last_error: SMSFailure | None = None
        self._lock = threading.Lock()

    # ========================================================================
    # Observation
    # ========================================================================

    def observe_request(
        self, endpoint: str, source: str, metadata: dict[str, Any] | None = None
    ) -> None:
        entry = RequestEntry(
            endpoint=endpoint,
            source=source,
            timestamp=self.clock(),
            metadata=metadata or {},
        )
        with self._lock:
            self.requests_total += 1
        self.ledger.record(REQUESTS_WINDOW, entry)

    def record_error(
        self, error_type: str | ErrorType, error: BaseException | str
    ) -> ErrorEntry:
        """Count an error and add it to the error window, without escalation."""
        kind = str(getattr(error_type, "value", error_type))
        entry = ErrorEntry(type=kind, message=error_message(error), timestamp=self.clock())
        with self._lock:
            self.errors_total += 1
            self.errors_by_type[kind] = self.errors_by_type.get(kind, 0) + 1
        self.ledger.record(ERRORS_WINDOW, entry)
        return entry

    async def observe_error(
        self,
        error_type: str | ErrorType,
        error: BaseException | str,
        context: AlertContext | None = None,
    ) -> None:
        """Record an error and raise a critical alert if its type qualifies."""
        entry = self.record_error(error_type, error)
        if self.alerts.is_critical(entry.type):
            await self.alerts.raise_critical_alert(entry.type, entry.message, context)

    async def observe_sms(
        self,
        success: bool,
        error: BaseException | str | None = None,
        context: AlertContext | None = None,
    ) -> None:
        """Count an SMS outcome; a failure is escalated as ``sms_send_failure``."""
        if success:
            with self._lock:
                self.sms_sent += 1
            return

        message = error_message(error) if error is not None else "Unknown error"
        with self._lock:
            self.sms_failed += 1
            self.sms_last_error = SMSFailure(message=message, timestamp=self.clock())
        await self.observe_error(ErrorType.SMS_SEND_FAILURE, message, context)

    # ========================================================================
    # Probes
    # ========================================================================

    async def get_outbound_ip(self) -> str:
        """Public IP of this process, or ``"unknown"`` if the probe fails."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.probe_timeout), transport=self.transport
            ) as client:
                response = await client.get(self.ip_probe_url)
                response.raise_for_status()
                return str(response.json()["ip"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            health_logger.error(f"Error getting outgoing IP: {type(e).__name__} - {str(e)}")
            return UNKNOWN_IP

    async def check_store_status(self) -> str:
        """``"connected"`` after a minimal read, otherwise ``"error: <reason>"``."""
        try:
            async with self.session_factory() as session:
                await health_log_db.get_by_conditions(session, [], limit=1)
        except AppException as e:
            return f"error: {e.message}"
        except Exception as e:
            # Driver-level connect failures are not always wrapped by SQLAlchemy
            return f"error: {str(e) or type(e).__name__}"
        return STORE_CONNECTED

    # ========================================================================
    # Reporting
    # ========================================================================

    async def build_report(self) -> dict[str, Any]:
        """
        Snapshot of current health. Reads metrics without mutating them.

        Returns:
            dict: ``timestamp``, ``uptime``, ``uptimeMs``, ``outgoingIp``,
            ``services``, ``metrics``, ``topEndpoints``, ``sources`` and
            ``recentErrors``.
        """
        outgoing_ip = await self.get_outbound_ip()
        store_status = await self.check_store_status()

        now = self.clock()
        uptime_ms = now - self.start_time
        requests = self.ledger.entries(REQUESTS_WINDOW)
        errors = self.ledger.entries(ERRORS_WINDOW)

        # Counter keeps first-seen order and sorted() is stable, so ties
        # stay in the order endpoints first appeared
        endpoint_counts = Counter(r.endpoint for r in requests)
        top_endpoints = sorted(endpoint_counts.items(), key=lambda kv: -kv[1])
        source_counts = Counter(r.source for r in requests)

        with self._lock:
            last_error = self.sms_last_error
            counters = {
                "requests": {"total": self.requests_total, "lastHour": len(requests)},
                "errors": {"total": self.errors_total, "lastHour": len(errors)},
                "sms": {"sent": self.sms_sent, "failed": self.sms_failed},
            }

        return {
            "timestamp": to_iso(now),
            "uptime": format_uptime(uptime_ms),
            "uptimeMs": uptime_ms,
            "outgoingIp": outgoing_ip,
            "services": {
                "store": store_status,
                "sms": (
                    f"warning (last error: {last_error.message})"
                    if last_error
                    else "operational"
                ),
            },
            "metrics": counters,
            "topEndpoints": [
                {"endpoint": endpoint, "count": count}
                for endpoint, count in top_endpoints[:TOP_ENDPOINTS_LIMIT]
            ],
            "sources": [
                {"source": source, "count": count}
                for source, count in source_counts.items()
            ],
            "recentErrors": [
                {
                    "type": e.type,
                    "message": truncate(e.message, RECENT_ERROR_MESSAGE_LIMIT),
                    "timestamp": to_iso(e.timestamp),
                }
                for e in errors[-RECENT_ERRORS_LIMIT:]
            ],
        }

    async def health_status(self) -> dict[str, Any]:
        """Summary served by ``GET /health``."""
        report = await self.build_report()
        store = report["services"]["store"]
        return {
            "status": "healthy" if store == STORE_CONNECTED else "degraded",
            "uptime": report["uptime"],
            "outboundIp": report["outgoingIp"],
            "serviceStatuses": report["services"],
            "metrics": report["metrics"],
        }

    async def emit_hourly_report(self) -> dict[str, Any]:
        """Build, send and persist one hourly report. Returns the report."""
        report = await self.build_report()
        severity = report_severity(report["metrics"]["errors"]["lastHour"])
        await self.alerts.send_report(
            HOURLY_REPORT_TITLE,
            f"Server is running for {report['uptime']}",
            severity,
            render_report_fields(report),
            report,
        )
        health_logger.info(
            f"Hourly report emitted: {report['metrics']['requests']['lastHour']} requests, "
            f"{report['metrics']['errors']['lastHour']} errors in the last hour"
        )
        return report

    async def purge_old_logs(self, retention_days: int | None = None) -> int:
        """
        Delete one batch (up to 500) of health logs older than the retention window.

        Returns:
            int: Number of logs deleted; 0 when nothing qualified or the store failed.
        """
        days = settings.LOG_RETENTION_DAYS if retention_days is None else retention_days
        cutoff = self.clock() - days * DAY_MS

        try:
            async with self.session_factory() as session:
                purged = await health_log_db.purge_older_than(session, cutoff)
        except AppException as e:
            health_logger.error(f"Error purging old logs: {e.message}")
            return 0

        if purged:
            health_logger.info(f"Purged {purged} old health logs")
        else:
            health_logger.info("No old logs to purge")
        return purged
