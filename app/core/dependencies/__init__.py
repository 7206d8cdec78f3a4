"""
Shared dependencies for FastAPI endpoints.

"""

from app.core.dependencies.db import get_async_session
from app.core.dependencies.health import HealthMonitorDep, get_health_monitor
from app.core.dependencies.internal import HealthAPIKeyDep, verify_health_api_key

__all__ = [
    # Dependency functions
    "get_async_session",
    "get_health_monitor",
    "verify_health_api_key",
    # Type aliases
    "HealthMonitorDep",
    "HealthAPIKeyDep",
]
