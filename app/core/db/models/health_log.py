from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class HealthLog(Base):
    """
    Persisted hourly report or critical alert.

    ``timestamp`` is epoch milliseconds and drives retention;
    ``created_at`` is assigned by the database server.
    """

    __tablename__ = "health_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )

    data: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    timestamp: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<HealthLog(id={self.id}, type={self.type}, timestamp={self.timestamp})>"
