"""
Routers for the application.

"""

from app.core.routers.auth import router as auth_router
from app.core.routers.health import router as health_router

__all__ = ["auth_router", "health_router"]
