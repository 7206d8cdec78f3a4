"""
Scheduler for periodic health tasks.

Both jobs use server-local time. The jobs hold a reference to the
in-process ``HealthMonitor``, so they use the memory job store and run
inside the API process.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import scheduler_logger, settings
from app.core.services.health import HealthMonitor
from app.infrastructure.scheduler.jobs import hourly_health_report, purge_health_logs

HOURLY_REPORT_JOB_ID = "hourly_health_report_job"
PURGE_LOGS_JOB_ID = "purge_health_logs_job"

scheduler = AsyncIOScheduler(
    job_defaults={
        "coalesce": True,  # Run a backlog of missed firings once
        "max_instances": 1,
    },
)


def schedule_hourly_health_report_job(monitor: HealthMonitor) -> None:
    """
    Schedule the hourly health report at minute 0 of every hour.
    """
    scheduler_logger.info(
        "Scheduling 'hourly_health_report' job to run at minute 0 of every hour"
    )
    scheduler.add_job(
        hourly_health_report,
        trigger=CronTrigger(minute=0),
        replace_existing=True,
        id=HOURLY_REPORT_JOB_ID,
        misfire_grace_time=60 * 5,  # 5 minutes grace time
        kwargs={"monitor": monitor},
    )
    scheduler_logger.info("'hourly_health_report' job scheduled successfully.")


def schedule_purge_health_logs_job(
    monitor: HealthMonitor, retention_days: int | None = None
) -> None:
    """
    Schedule the health log purge daily at 02:00 server-local time.
    """
    scheduler_logger.info("Scheduling 'purge_health_logs' job to run daily at 02:00")
    scheduler.add_job(
        purge_health_logs,
        trigger=CronTrigger(hour=2, minute=0),
        replace_existing=True,
        id=PURGE_LOGS_JOB_ID,
        misfire_grace_time=60 * 60,  # 1 hour grace time
        kwargs={"monitor": monitor, "retention_days": retention_days},
    )
    scheduler_logger.info("'purge_health_logs' job scheduled successfully.")


def initialize_scheduler(monitor: HealthMonitor) -> None:
    """
    Register all periodic jobs for ``monitor``.

    Called during application startup, after the scheduler has started.
    """
    schedule_hourly_health_report_job(monitor)
    schedule_purge_health_logs_job(monitor, retention_days=settings.LOG_RETENTION_DAYS)
