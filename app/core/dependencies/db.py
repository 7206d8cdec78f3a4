from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import AsyncSessionLocal


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one database session per request, closed when the request ends.

    Tests override this dependency to bind requests to an isolated engine.
    """
    async with AsyncSessionLocal() as async_session:
        yield async_session
