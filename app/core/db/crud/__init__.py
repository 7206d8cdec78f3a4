from app.core.db.crud.base import BaseDB, MAX_BATCH_SIZE
from app.core.db.crud.health_log import HealthLogDB
from app.core.db.crud.otp_session import OTPSessionDB
from app.core.db.crud.profile import ProfileDB
from app.core.db.crud.refresh_token import RefreshTokenDB

# Global CRUD instances - use these instead of creating new instances
otp_session_db = OTPSessionDB()
refresh_token_db = RefreshTokenDB()
profile_db = ProfileDB()
health_log_db = HealthLogDB()

__all__ = [
    # Classes (for type hints and subclassing)
    "BaseDB",
    "HealthLogDB",
    "OTPSessionDB",
    "ProfileDB",
    "RefreshTokenDB",
    "MAX_BATCH_SIZE",
    # Global instances (for actual usage)
    "otp_session_db",
    "refresh_token_db",
    "profile_db",
    "health_log_db",
]
