"""
Shared helpers for token signing, OTP generation and log-safe formatting.

- JWT creation/validation with an explicit secret per token kind
- Numeric OTP codes and opaque session ids
- Epoch-millisecond clock used by expiry and retention checks
- Masking of phone numbers for logs
"""

from datetime import datetime, timedelta, timezone
import secrets
import time
from typing import Any
import uuid

import jwt

from app.core.config import settings, utils_logger


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def create_jwt_token(
    data: dict[str, Any] | None,
    secret: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT token with the given data and expiration time.

    The token is signed with ``secret`` using the configured algorithm and
    always carries ``exp``, ``iat`` and a random ``jti`` so that two tokens
    issued for the same subject in the same second still differ.

    Args:
        data: Dictionary containing the claims to encode. Cannot be None.
        secret: Signing key. Access and refresh tokens use different keys.
        expires_delta: Optional lifetime. Defaults to 15 minutes.
                      Can be negative for immediate expiration (testing only).

    Returns:
        str: Encoded JWT token string in the format: header.payload.signature

    Raises:
        ValueError: If data is None.

    Examples:
        >>> token = create_jwt_token({"phone": "+15551234567"}, "secret")
        >>> len(token.split("."))
        3
    """
    if data is None:
        utils_logger.error("Attempted to create JWT token with None data")
        raise ValueError("Data cannot be None")

    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=15)

    issued_at = datetime.now(timezone.utc)
    expire = issued_at + expires_delta
    to_encode["exp"] = expire
    to_encode["iat"] = issued_at
    to_encode["jti"] = str(uuid.uuid4())

    encoded_jwt = jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)

    utils_logger.info(
        f"JWT token created successfully with expiration: {expire.isoformat()}"
    )
    return encoded_jwt


def decode_jwt_token(token: str | None, secret: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Returns None for any invalid, expired, or tampered token instead of
    raising, so callers only need a single falsy check.

    Args:
        token: The JWT token string to decode. Can be None or empty.
        secret: Key the token is expected to be signed with.

    Returns:
        dict[str, Any] | None: The decoded claims, or None if validation failed.
    """
    if not token:
        utils_logger.warning(
            f"JWT token decoding attempted with invalid token: "
            f"{'None' if token is None else 'empty string'}"
        )
        return None

    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
        utils_logger.info("JWT token decoded and validated successfully")
        return payload
    except jwt.ExpiredSignatureError:
        utils_logger.warning("JWT token decoding failed: token has expired")
        return None
    except jwt.InvalidTokenError as e:
        utils_logger.warning(
            f"JWT token decoding failed: invalid token - {type(e).__name__}"
        )
        return None


def generate_otp_code() -> str:
    """
    Generate a 6-digit numeric OTP drawn uniformly from [100000, 999999].

    Uses a single ``secrets.randbelow`` draw, so the work done does not
    depend on the digits produced.
    """
    return str(100000 + secrets.randbelow(900000))


def generate_session_id() -> str:
    """Opaque, globally unique OTP session identifier."""
    return str(uuid.uuid4())


def mask_phone(phone_number: str | None) -> str:
    """
    Mask a phone number for logging, keeping only the last 4 digits.

    Examples:
        >>> mask_phone("+15551234567")
        '********4567'
        >>> mask_phone("123")
        '***'
    """
    if not phone_number:
        return ""
    if len(phone_number) <= 4:
        return "*" * len(phone_number)
    return f"{'*' * (len(phone_number) - 4)}{phone_number[-4:]}"


def truncate(text: str | None, limit: int) -> str:
    """Clip ``text`` to at most ``limit`` characters."""
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit]
