"""
OTP lifecycle service for phone-number login.

This module handles:
- OTP session creation and SMS dispatch
- Resending the stored code of a live session
- Single-use verification and token issuance
- Access token refresh against the stored refresh token
- Logout (refresh token removal)

Session state machine: created -> dispatched (sent | send_failed) ->
consumed (deleted on verify) or expired (checked on read). A failed dispatch
keeps the session so the caller can retry with the same code.

Example usage:
    from app.core.services.otp import OTPService

    session_id = await OTPService.request_otp(session, "+15551234567", monitor)
    result = await OTPService.verify_otp(session, "+15551234567", "123456", session_id)
"""

from dataclasses import dataclass
from datetime import timedelta
import hmac

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import auth_logger, settings
from app.core.db.crud import otp_session_db, profile_db, refresh_token_db
from app.core.db.models import OTPSession
from app.core.enums import DispatchStatus
from app.core.exceptions.types import (
    InvalidRefreshTokenException,
    OTPExpiredException,
    OTPInvalidException,
    OTPSessionNotFoundException,
    SMSDeliveryException,
    SMSException,
)
from app.core.services.alerts import AlertContext
from app.core.services.health import HealthMonitor
from app.core.services.sms import SMSService
from app.core.utils import (
    create_jwt_token,
    decode_jwt_token,
    generate_otp_code,
    generate_session_id,
    mask_phone,
    now_ms,
)

__all__ = ["OTPService", "LoginResult"]


@dataclass
class LoginResult:
    """Tokens issued by a successful verification."""

    access_token: str
    refresh_token: str
    profile_complete: bool


class OTPService:
    """OTP request, retry, verification and token refresh."""

    # =========================================================================
    # Dispatch
    # =========================================================================

    @classmethod
    async def _dispatch(
        cls,
        session: AsyncSession,
        otp_session: OTPSession,
        monitor: HealthMonitor,
        endpoint: str,
    ) -> None:
        """
        Send the session's code and record the outcome on the session.

        On any failure the session is marked ``send_failed`` and kept, the
        failure is reported to the health monitor, and an ``SMSException``
        carrying the session id is raised.
        """
        context = AlertContext(endpoint=endpoint, phone_number=otp_session.phone_number)
        try:
            result = await SMSService.send_otp(otp_session.phone_number, otp_session.code)
        except SMSException as e:
            await otp_session_db.update(
                session,
                otp_session.id,
                {
                    "dispatch_status": DispatchStatus.SEND_FAILED.value,
                    "provider_response": {"error": e.message},
                },
            )
            await monitor.observe_sms(False, e, context)
            e.session_id = otp_session.id
            raise

        if not result.success:
            await otp_session_db.update(
                session,
                otp_session.id,
                {
                    "dispatch_status": DispatchStatus.SEND_FAILED.value,
                    "provider_response": result.provider_response,
                },
            )
            await monitor.observe_sms(False, result.reason or "Unknown error", context)
            raise SMSDeliveryException(
                f"Failed to send OTP: {result.reason}", session_id=otp_session.id
            )

        await otp_session_db.update(
            session,
            otp_session.id,
            {
                "dispatch_status": DispatchStatus.SENT.value,
                "provider_response": result.provider_response,
            },
        )
        await monitor.observe_sms(True)

    # =========================================================================
    # OTP Flow
    # =========================================================================

    @classmethod
    async def request_otp(
        cls,
        session: AsyncSession,
        phone_number: str,
        monitor: HealthMonitor,
    ) -> str:
        """
        Create an OTP session for ``phone_number`` and send its code.

        The session is committed as ``not_sent`` before the gateway is
        called, so it survives a failed or timed-out dispatch.

        Args:
            session: Database session.
            phone_number: Validated phone number, stored as submitted.
            monitor: Health monitor receiving the SMS outcome.

        Returns:
            str: The new session id.

        Raises:
            SMSException: Dispatch failed; ``session_id`` is set on the exception.
        """
        created_at = now_ms()
        otp_session = await otp_session_db.create(
            session,
            data={
                "id": generate_session_id(),
                "phone_number": phone_number,
                "code": generate_otp_code(),
                "created_at": created_at,
                "expires_at": created_at + settings.OTP_EXPIRY_MINUTES * 60_000,
                "dispatch_status": DispatchStatus.NOT_SENT.value,
            },
        )
        auth_logger.info(
            f"OTP session {otp_session.id} created for {mask_phone(phone_number)}"
        )

        await cls._dispatch(session, otp_session, monitor, endpoint="POST /otp/request")
        auth_logger.info(f"OTP sent for session {otp_session.id}")
        return otp_session.id

    @classmethod
    async def retry_otp(
        cls,
        session: AsyncSession,
        session_id: str,
        monitor: HealthMonitor,
    ) -> None:
        """
        Resend the stored code of an existing, unexpired session.

        Neither the code nor the expiry changes.

        Raises:
            OTPSessionNotFoundException: Unknown session id.
            OTPExpiredException: The session is past its expiry.
            SMSException: Dispatch failed again.
        """
        otp_session = await otp_session_db.get_by_key(session, session_id)
        if otp_session is None:
            auth_logger.warning(f"OTP retry for unknown session {session_id}")
            raise OTPSessionNotFoundException()

        if otp_session.is_expired(now_ms()):
            auth_logger.info(f"OTP retry for expired session {session_id}")
            raise OTPExpiredException()

        await cls._dispatch(session, otp_session, monitor, endpoint="POST /otp/retry")
        auth_logger.info(f"OTP resent for session {session_id}")

    @classmethod
    async def verify_otp(
        cls,
        session: AsyncSession,
        phone_number: str,
        code: str,
        session_id: str,
    ) -> LoginResult:
        """
        Consume an OTP session and issue tokens.

        A wrong phone number, wrong code and an expired session all raise the
        same ``OTPInvalidException`` and leave the session in place.

        Args:
            session: Database session.
            phone_number: Number the code was requested for.
            code: Code entered by the user.
            session_id: Id returned by ``request_otp``.

        Returns:
            LoginResult: Access token, refresh token and profile completeness.

        Raises:
            OTPSessionNotFoundException: Unknown (or already consumed) session id.
            OTPInvalidException: Mismatch or expiry.
        """
        otp_session = await otp_session_db.get_by_key(session, session_id)
        if otp_session is None:
            auth_logger.warning(f"OTP verification for unknown session {session_id}")
            raise OTPSessionNotFoundException()

        phone_matches = hmac.compare_digest(
            otp_session.phone_number.encode(), phone_number.encode()
        )
        code_matches = hmac.compare_digest(otp_session.code.encode(), code.encode())
        if not (phone_matches and code_matches) or otp_session.is_expired(now_ms()):
            auth_logger.info(f"OTP verification failed for session {session_id}")
            raise OTPInvalidException()

        # A concurrent verify may have consumed the session since the read
        if not await otp_session_db.delete(session, session_id, commit_self=False):
            await session.rollback()
            raise OTPSessionNotFoundException()

        access_token = cls.create_access_token(phone_number)
        refresh_token = create_jwt_token(
            {"sub": phone_number, "type": "refresh"},
            settings.REFRESH_TOKEN_SECRET_KEY,
            timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        await refresh_token_db.store(session, phone_number, refresh_token, commit_self=False)
        profile, created = await profile_db.get_or_create(
            session, phone_number, commit_self=False
        )
        await session.commit()

        auth_logger.info(
            f"OTP verified for {mask_phone(phone_number)} "
            f"(new profile: {created}, complete: {profile.is_complete})"
        )
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            profile_complete=profile.is_complete,
        )

    # =========================================================================
    # Tokens
    # =========================================================================

    @classmethod
    def create_access_token(cls, phone_number: str) -> str:
        return create_jwt_token(
            {"sub": phone_number, "type": "access"},
            settings.JWT_SECRET_KEY,
            timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    @classmethod
    async def refresh_access_token(
        cls,
        session: AsyncSession,
        refresh_token: str,
    ) -> str:
        """
        Issue a new access token for a valid, current refresh token.

        The presented token must match the stored one exactly; a token that
        was superseded by a later login is rejected. The refresh token itself
        is not rotated.

        Raises:
            InvalidRefreshTokenException: Bad signature, expiry or superseded token.
        """
        payload = decode_jwt_token(refresh_token, settings.REFRESH_TOKEN_SECRET_KEY)
        if not payload or payload.get("type") != "refresh" or not payload.get("sub"):
            raise InvalidRefreshTokenException("Invalid or expired refresh token.")

        phone_number = payload["sub"]
        record = await refresh_token_db.get_by_key(session, phone_number)
        if record is None or not hmac.compare_digest(
            record.token.encode(), refresh_token.encode()
        ):
            auth_logger.warning(
                f"Refresh rejected for {mask_phone(phone_number)}: token superseded or revoked"
            )
            raise InvalidRefreshTokenException()

        auth_logger.info(f"Access token refreshed for {mask_phone(phone_number)}")
        return cls.create_access_token(phone_number)

    @classmethod
    async def logout(cls, session: AsyncSession, phone_number: str) -> None:
        """Remove the stored refresh token. Succeeds whether or not one exists."""
        deleted = await refresh_token_db.delete(session, phone_number)
        auth_logger.info(
            f"Logout for {mask_phone(phone_number)} (token removed: {deleted})"
        )
