from app.core.db.models.health_log import HealthLog
from app.core.db.models.otp_session import OTPSession
from app.core.db.models.profile import Profile
from app.core.db.models.refresh_token import RefreshTokenRecord

__all__ = [
    "HealthLog",
    "OTPSession",
    "Profile",
    "RefreshTokenRecord",
]
