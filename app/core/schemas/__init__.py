"""
Schemas for API request validation and response serialization.

"""

from app.core.schemas.health import HealthStatusResponse, ReportResponse
from app.core.schemas.otp import (
    # Base
    CamelModel,
    MessageResponse,
    # OTP
    OTPRequest,
    OTPRequestResponse,
    OTPRetryRequest,
    OTPVerifyRequest,
    LoginResponse,
    # Tokens
    RefreshTokenRequest,
    AccessTokenResponse,
    LogoutRequest,
)

__all__ = [
    # Base
    "CamelModel",
    "MessageResponse",
    # OTP
    "OTPRequest",
    "OTPRequestResponse",
    "OTPRetryRequest",
    "OTPVerifyRequest",
    "LoginResponse",
    # Tokens
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "LogoutRequest",
    # Health
    "HealthStatusResponse",
    "ReportResponse",
]
