"""
Authentication router for phone-number OTP login.

This module provides endpoints for:
- Requesting and resending an OTP
- Verifying an OTP in exchange for access/refresh tokens
- Refreshing an access token
- Logging out (refresh token removal)

SMS failures answer 500 (504 on gateway timeout) with the surviving
``sessionId`` so the client can call /otp/retry instead of starting over.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import HealthMonitorDep, get_async_session
from app.core.schemas.otp import (
    AccessTokenResponse,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    OTPRequest,
    OTPRequestResponse,
    OTPRetryRequest,
    OTPVerifyRequest,
    RefreshTokenRequest,
)
from app.core.services.otp import OTPService

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]

_sms_failure_responses = {
    500: {
        "description": "SMS gateway refused the message or was unreachable",
        "content": {
            "application/json": {
                "example": {"error": "Failed to send OTP: Invalid number", "sessionId": "..."}
            }
        },
    },
    504: {
        "description": "SMS gateway timed out",
        "content": {
            "application/json": {
                "example": {"error": "SMS gateway timed out. Please retry.", "sessionId": "..."}
            }
        },
    },
}


@router.post(
    "/otp/request",
    response_model=OTPRequestResponse,
    status_code=status.HTTP_200_OK,
    summary="Request an OTP",
    description="""
## Start Phone Login

Creates a new OTP session for the phone number and sends a 6-digit code by SMS.
The code is valid for 5 minutes. Keep the returned `sessionId`: it is needed
to verify the code or to resend it.

If sending fails, the session is kept and its id is returned with the error,
so `/otp/retry` can resend the same code.
""",
    responses={
        400: {"description": "Invalid phone number"},
        **_sms_failure_responses,
    },
)
async def request_otp(
    request_data: OTPRequest,
    session: SessionDep,
    monitor: HealthMonitorDep,
) -> OTPRequestResponse:
    session_id = await OTPService.request_otp(session, request_data.phone_number, monitor)
    return OTPRequestResponse(session_id=session_id)


@router.post(
    "/otp/retry",
    response_model=MessageResponse,
    summary="Resend an OTP",
    description="Resends the stored code of an unexpired session. The code and expiry do not change.",
    responses={
        400: {"description": "Unknown or expired session"},
        **_sms_failure_responses,
    },
)
async def retry_otp(
    request_data: OTPRetryRequest,
    session: SessionDep,
    monitor: HealthMonitorDep,
) -> MessageResponse:
    await OTPService.retry_otp(session, request_data.session_id, monitor)
    return MessageResponse(message="OTP resent successfully")


@router.post(
    "/otp/verify",
    response_model=LoginResponse,
    summary="Verify an OTP",
    description="""
## Complete Phone Login

Consumes the OTP session and returns tokens. A session can be verified once.

| Token | Lifetime |
|-------|----------|
| `accessToken` | 1 hour |
| `refreshToken` | 7 days (replaced on every login) |

`profileComplete` tells the client whether to show profile onboarding.
A wrong code and an expired code give the same error.
""",
    responses={400: {"description": "Unknown session, or invalid or expired OTP"}},
)
async def verify_otp(
    request_data: OTPVerifyRequest,
    session: SessionDep,
) -> LoginResponse:
    result = await OTPService.verify_otp(
        session,
        phone_number=request_data.phone_number,
        code=request_data.otp,
        session_id=request_data.session_id,
    )
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        profile_complete=result.profile_complete,
    )


@router.post(
    "/token/refresh",
    response_model=AccessTokenResponse,
    summary="Refresh the access token",
    description="Issues a new access token. Only the most recently issued refresh token of a phone number is accepted.",
    responses={401: {"description": "Invalid, expired or superseded refresh token"}},
)
async def refresh_token(
    request_data: RefreshTokenRequest,
    session: SessionDep,
) -> AccessTokenResponse:
    access_token = await OTPService.refresh_access_token(session, request_data.refresh_token)
    return AccessTokenResponse(access_token=access_token)


@router.post(
    "/session/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Removes the stored refresh token. Succeeds even if none is stored.",
)
async def logout(
    request_data: LogoutRequest,
    session: SessionDep,
) -> MessageResponse:
    await OTPService.logout(session, request_data.phone_number)
    return MessageResponse(message="Logged out successfully")
