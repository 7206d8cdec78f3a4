from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.models.base import BaseModel


class Profile(BaseModel):
    """Subject profile. Only the completeness flag is read by the login flow."""

    __tablename__ = "profiles"

    phone_number: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
    )

    is_complete: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
