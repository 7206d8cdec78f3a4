"""
Async SQLAlchemy store for OTP sessions, refresh tokens, profiles and health logs.
"""

from app.core.db.config import (
    AsyncSessionLocal,
    Base,
    async_engine,
    dispose_db,
    init_db,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "init_db",
    "dispose_db",
]
