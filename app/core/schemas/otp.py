"""
OTP and token schemas for request validation and response serialization.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

# Optional leading '+', then 8 to 15 digits
PhoneNumberStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, pattern=r"^\+?\d{8,15}$"),
    Field(description="Phone number, digits with optional leading '+'"),
]

# OTP code with pattern validation
OTPCodeStr = Annotated[
    str,
    StringConstraints(min_length=6, max_length=6, pattern=r"^\d{6}$"),
    Field(description="6-digit verification code"),
]

SessionIdStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=64),
    Field(description="OTP session id returned by /otp/request"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    """Generic message response."""

    message: str
    success: bool = True


class OTPRequest(CamelModel):
    """Request schema for starting an OTP login."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"phoneNumber": "+15551234567"}}
    )

    phone_number: PhoneNumberStr


class OTPRequestResponse(CamelModel):
    session_id: str
    message: str = "OTP sent successfully"


class OTPRetryRequest(CamelModel):
    """Request schema for resending the code of an existing session."""

    session_id: SessionIdStr


class OTPVerifyRequest(CamelModel):
    """Request schema for verifying an OTP."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "phoneNumber": "+15551234567",
                "otp": "123456",
                "sessionId": "9b2f0c9e-3b9d-4d7e-9a53-0f4a8a3c2e11",
            }
        }
    )

    phone_number: PhoneNumberStr
    otp: OTPCodeStr
    session_id: SessionIdStr


class LoginResponse(CamelModel):
    access_token: str
    refresh_token: str
    profile_complete: bool


class RefreshTokenRequest(CamelModel):
    refresh_token: Annotated[str, StringConstraints(min_length=1)]


class AccessTokenResponse(CamelModel):
    access_token: str


class LogoutRequest(CamelModel):
    phone_number: PhoneNumberStr
