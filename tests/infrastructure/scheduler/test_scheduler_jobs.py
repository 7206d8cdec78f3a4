"""
Test suite for scheduled health jobs.

Run tests:
    pytest tests/infrastructure/scheduler/test_scheduler_jobs.py -v
"""

from unittest.mock import AsyncMock, MagicMock, patch

from app.core.config import settings
from app.infrastructure.scheduler.jobs import hourly_health_report, purge_health_logs


class TestHourlyHealthReport:
    """Test suite for the hourly report job."""

    async def test_emits_report(self, monitor, notifier):
        await hourly_health_report(monitor)

        notifier.send.assert_awaited_once()

    async def test_failure_is_logged_not_raised(self):
        monitor = MagicMock()
        monitor.emit_hourly_report = AsyncMock(side_effect=RuntimeError("boom"))

        with patch("app.infrastructure.scheduler.jobs.scheduler_logger") as mock_logger:
            await hourly_health_report(monitor)

        mock_logger.exception.assert_called_once()
        assert "boom" in str(mock_logger.exception.call_args)


class TestPurgeHealthLogs:
    """Test suite for the retention job."""

    async def test_uses_configured_retention_by_default(self):
        monitor = MagicMock()
        monitor.purge_old_logs = AsyncMock(return_value=3)

        await purge_health_logs(monitor)

        monitor.purge_old_logs.assert_awaited_once_with(settings.LOG_RETENTION_DAYS)

    async def test_retention_override(self):
        monitor = MagicMock()
        monitor.purge_old_logs = AsyncMock(return_value=0)

        await purge_health_logs(monitor, retention_days=1)

        monitor.purge_old_logs.assert_awaited_once_with(1)

    async def test_failure_is_logged_not_raised(self):
        monitor = MagicMock()
        monitor.purge_old_logs = AsyncMock(side_effect=RuntimeError("locked"))

        with patch("app.infrastructure.scheduler.jobs.scheduler_logger") as mock_logger:
            await purge_health_logs(monitor)

        mock_logger.exception.assert_called_once()
