"""
Alert dispatching for the health monitor.

Critical errors fan out to the notification webhook, an optional
administrator SMS and a persisted ``critical_alert`` log. None of these
side channels ever raises back into the caller. Alerts are not
de-duplicated: every qualifying failure produces a fresh notification.
"""

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings, health_logger
from app.core.db.crud import health_log_db
from app.core.enums import AlertSeverity, ErrorType, HealthLogType
from app.core.exceptions.types import AppException
from app.core.services.notification import NotificationField, NotificationService
from app.core.services.sms import SMSService
from app.core.utils import mask_phone, now_ms

CRITICAL_ERROR_TYPES = frozenset(
    {
        ErrorType.SMS_SEND_FAILURE.value,
        ErrorType.STORE_CONNECTION_ERROR.value,
        ErrorType.API_OUTAGE.value,
        ErrorType.SERVICE_UNAVAILABLE.value,
    }
)

CRITICAL_ALERT_TITLE = "🚨 CRITICAL ERROR ALERT"
CRITICAL_ALERT_DESCRIPTION = "A critical error has occurred in the OTP server"


@dataclass(frozen=True)
class AlertContext:
    """Structured context attached to an observed error."""

    endpoint: str | None = None
    phone_number: str | None = None
    reason: str | None = None
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Non-empty fields only, with the phone number masked."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if "phone_number" in data:
            data["phone_number"] = mask_phone(data["phone_number"])
        return data


def error_message(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error
    return str(error) or type(error).__name__


class AlertDispatcher:
    """
    Sends reports and critical alerts to operators.

    Args:
        session_factory: Factory for sessions used to persist health logs.
        notifier: Notification channel (class exposing ``send``).
        sms: SMS client (class exposing ``send_alert``).
        admin_phone: Administrator number; empty disables the alert SMS.
        clock: Epoch-millisecond clock.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: type[NotificationService] = NotificationService,
        sms: type[SMSService] = SMSService,
        admin_phone: str | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.sms = sms
        self.admin_phone = settings.ADMIN_PHONE if admin_phone is None else admin_phone
        self.clock = clock
        self._pending: set[asyncio.Task] = set()

    @staticmethod
    def is_critical(error_type: str) -> bool:
        return error_type in CRITICAL_ERROR_TYPES

    async def raise_critical_alert(
        self,
        error_type: str,
        error: BaseException | str,
        context: AlertContext | None = None,
    ) -> None:
        """
        Notify operators of a critical error.

        Sends the webhook notification and persists a ``critical_alert`` log.
        The administrator SMS, when configured, runs as a background task so
        the caller never waits on the gateway. Each step's failure is logged
        and the next step still runs.
        """
        message = error_message(error)
        timestamp = self.clock()
        context_data = context.to_dict() if context else {}
        health_logger.error(f"[CRITICAL ALERT] {error_type}: {message}")

        fields = [
            NotificationField("Error Type", error_type, inline=True),
            NotificationField(
                "Timestamp",
                datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).isoformat(),
                inline=True,
            ),
            NotificationField("Error Message", message),
        ]
        if context_data:
            fields.append(NotificationField("Context", json.dumps(context_data, indent=2)))

        await self.notifier.send(
            CRITICAL_ALERT_TITLE,
            CRITICAL_ALERT_DESCRIPTION,
            AlertSeverity.RED,
            fields,
        )

        if self.admin_phone:
            task = asyncio.get_running_loop().create_task(
                self._send_admin_sms(error_type, message)
            )
            self._pending.add(task)
            task.add_done_callback(self._on_admin_sms_done)

        await self.persist(
            HealthLogType.CRITICAL_ALERT,
            {
                "errorType": error_type,
                "message": message,
                "context": context_data,
                "timestamp": timestamp,
            },
            timestamp,
        )

    async def _send_admin_sms(self, error_type: str, message: str) -> None:
        # Best effort: the failure of this path never reaches the caller
        try:
            result = await self.sms.send_alert(
                self.admin_phone, f"[OTP Server Alert] {error_type}: {message}"
            )
        except AppException as e:
            health_logger.error(f"Failed to send SMS alert: {e.message}")
            return
        if not result.success:
            health_logger.error(f"Failed to send SMS alert: {result.reason}")

    def _on_admin_sms_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            health_logger.error(
                f"Failed to send SMS alert: {type(exc).__name__} - {error_message(exc)}"
            )

    async def wait_pending(self) -> None:
        """Wait for administrator SMS alerts still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def send_report(
        self,
        title: str,
        description: str,
        severity: AlertSeverity,
        fields: list[NotificationField],
        report: dict[str, Any],
    ) -> bool:
        """Send a rendered hourly report and persist its full payload."""
        sent = await self.notifier.send(title, description, severity, fields)
        await self.persist(HealthLogType.HOURLY_REPORT, report, self.clock())
        return sent

    async def persist(
        self, log_type: HealthLogType, data: dict[str, Any], timestamp: int
    ) -> bool:
        """Write a health log entry; store failures are logged, not raised."""
        try:
            async with self.session_factory() as session:
                await health_log_db.log(session, log_type, data, timestamp)
        except AppException as e:
            health_logger.error(f"Error logging {log_type.value} to store: {e.message}")
            return False
        return True
