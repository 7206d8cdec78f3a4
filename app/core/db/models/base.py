from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.core.utils import now_ms


class BaseModel(Base):
    __abstract__ = True

    # Epoch milliseconds, compared directly against now_ms()
    created_at: Mapped[int] = mapped_column(
        BigInteger,
        default=now_ms,
        nullable=False,
    )
