from typing import Any

from pydantic import BaseModel, Field


class HealthStatusResponse(BaseModel):
    """Response schema for GET /health."""

    status: str = Field(description="'healthy' when the store is reachable, else 'degraded'")
    uptime: str
    outboundIp: str
    serviceStatuses: dict[str, str]
    metrics: dict[str, Any]


class ReportResponse(BaseModel):
    """Response schema for POST /health/report-now."""

    report: dict[str, Any]
