from app.infrastructure.scheduler.jobs import hourly_health_report, purge_health_logs
from app.infrastructure.scheduler.main import (
    HOURLY_REPORT_JOB_ID,
    PURGE_LOGS_JOB_ID,
    initialize_scheduler,
    schedule_hourly_health_report_job,
    schedule_purge_health_logs_job,
    scheduler,
)

__all__ = [
    "scheduler",
    "hourly_health_report",
    "purge_health_logs",
    "schedule_hourly_health_report_job",
    "schedule_purge_health_logs_job",
    "initialize_scheduler",
    "HOURLY_REPORT_JOB_ID",
    "PURGE_LOGS_JOB_ID",
]
