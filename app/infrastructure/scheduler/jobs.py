from app.core.config import scheduler_logger, settings
from app.core.services.health import HealthMonitor


async def hourly_health_report(monitor: HealthMonitor) -> None:
    """
    Periodic task that builds, sends and stores the hourly health report.

    Any failure is logged; the job never raises into the scheduler.

    Args:
        monitor (HealthMonitor): The application's health monitor.
    """
    scheduler_logger.info("Running hourly health report...")
    try:
        report = await monitor.emit_hourly_report()
    except Exception as e:
        scheduler_logger.exception(f"Hourly health report failed: {e}")
        return
    scheduler_logger.info(
        f"Hourly health report completed (uptime {report['uptime']})."
    )


async def purge_health_logs(monitor: HealthMonitor, retention_days: int | None = None) -> None:
    """
    Periodic task to delete one batch of health logs older than the retention window.

    Args:
        monitor (HealthMonitor): The application's health monitor.
        retention_days (int | None): Override for LOG_RETENTION_DAYS.
    """
    days = settings.LOG_RETENTION_DAYS if retention_days is None else retention_days
    scheduler_logger.info(f"Starting purge of health logs older than {days} days")
    try:
        purged = await monitor.purge_old_logs(days)
    except Exception as e:
        scheduler_logger.exception(f"Health log purge failed: {e}")
        return
    scheduler_logger.info(f"Completed health log purge. Deleted {purged} record(s).")
