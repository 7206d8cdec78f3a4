from typing import Annotated

from fastapi import Depends, Request

from app.core.services.health import HealthMonitor


def get_health_monitor(request: Request) -> HealthMonitor:
    """Return the application's health monitor from ``app.state``."""
    return request.app.state.health_monitor


HealthMonitorDep = Annotated[HealthMonitor, Depends(get_health_monitor)]

__all__ = ["get_health_monitor", "HealthMonitorDep"]
