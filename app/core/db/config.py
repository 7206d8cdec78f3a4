from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    async_sessionmaker,
    AsyncAttrs,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

ASYNC_SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> dict:
    """Pool settings for server databases; SQLite manages its own pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": 3600,  # Recycle connections every hour
    }


async_engine: AsyncEngine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(ASYNC_SQLALCHEMY_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    autoflush=False,
    expire_on_commit=False,
    autobegin=True,
)


class Base(AsyncAttrs, DeclarativeBase):
    pass


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Creates every table registered on the declarative metadata.

    Args:
        engine (AsyncEngine | None): Engine to create tables on. Defaults to
            the application engine.

    Returns:
        None
    """
    # Register the models on Base.metadata before create_all
    import app.core.db.models  # noqa: F401

    async with (engine or async_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Dispose the application engine's connection pool."""
    await async_engine.dispose()
