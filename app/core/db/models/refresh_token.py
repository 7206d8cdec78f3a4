from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.models.base import BaseModel


class RefreshTokenRecord(BaseModel):
    """
    The single live refresh token of a phone number.

    Keyed by phone number, so issuing a new token overwrites (and thereby
    revokes) the previous one.
    """

    __tablename__ = "refresh_tokens"

    phone_number: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
    )

    token: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<RefreshTokenRecord(created_at={self.created_at})>"
