from fastapi import APIRouter

from app.core.config import health_logger
from app.core.dependencies import HealthAPIKeyDep, HealthMonitorDep
from app.core.schemas.health import HealthStatusResponse, ReportResponse

router = APIRouter(prefix="/health")


@router.get(
    "",
    response_model=HealthStatusResponse,
    summary="Service health",
    description="Uptime, outbound IP, store and SMS status, and request/error/SMS counters.",
)
async def health(monitor: HealthMonitorDep) -> HealthStatusResponse:
    return HealthStatusResponse(**await monitor.health_status())


@router.post(
    "/report-now",
    response_model=ReportResponse,
    summary="Send a health report now",
    description="Builds, sends and stores an hourly-style report immediately. Requires the `X-API-Key` header.",
    responses={401: {"description": "Invalid or missing API key"}},
)
async def report_now(
    monitor: HealthMonitorDep,
    _api_key: HealthAPIKeyDep,
) -> ReportResponse:
    health_logger.info("Manual health report requested")
    report = await monitor.emit_hourly_report()
    return ReportResponse(report=report)
