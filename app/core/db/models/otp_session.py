"""
OTP session model.

"""

from typing import Any

from sqlalchemy import BigInteger, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.models.base import BaseModel
from app.core.enums import DispatchStatus


class OTPSession(BaseModel):
    """
    A single one-time-passcode issuance.

    Sessions are looked up by their opaque id only; the code need not be
    unique across sessions. Expiry is checked when a session is read, rows
    are never swept eagerly.

    Attributes:
        id: Opaque session id (UUID string).
        phone_number: Phone number as submitted by the caller.
        code: 6 ASCII digits.
        expires_at: Absolute expiry in epoch milliseconds.
        dispatch_status: Outcome of the latest SMS gateway call.
        provider_response: Last raw gateway response, if any.
    """

    __tablename__ = "otp_sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
    )

    phone_number: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(
        String(6),
        nullable=False,
    )

    expires_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    dispatch_status: Mapped[str] = mapped_column(
        String(16),
        default=DispatchStatus.NOT_SENT.value,
        nullable=False,
    )

    provider_response: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<OTPSession(id={self.id}, expires_at={self.expires_at}, "
            f"dispatch_status={self.dispatch_status})>"
        )

    def is_expired(self, at_ms: int) -> bool:
        """A session is usable up to and including its expiry instant."""
        return at_ms > self.expires_at
