"""
CRUD operations for refresh token records.

- Storing the single live token of a phone number (overwrite on login)
- Looking up the stored token for comparison on refresh
- Removing it on logout
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.crud.base import BaseDB
from app.core.db.models.refresh_token import RefreshTokenRecord
from app.core.utils import now_ms


class RefreshTokenDB(BaseDB[RefreshTokenRecord]):
    """
    Database operations for RefreshTokenRecord.

    Example:
        >>> db = RefreshTokenDB()
        >>> await db.store(session, "+15551234567", token)
        >>> record = await db.get_by_key(session, "+15551234567")
    """

    def __init__(self):
        super().__init__(model=RefreshTokenRecord)

    async def store(
        self,
        session: AsyncSession,
        phone_number: str,
        token: str,
        commit_self: bool = True,
    ) -> RefreshTokenRecord:
        """
        Store ``token`` as the only refresh token of ``phone_number``.

        Any previously stored token for the number is overwritten, which
        revokes it.

        Args:
            session: The database session.
            phone_number: Subject the token is bound to.
            token: Signed refresh token value.
            commit_self: Whether to commit after the write.

        Returns:
            The stored record.
        """
        return await self.upsert(
            session,
            data={
                "phone_number": phone_number,
                "token": token,
                "created_at": now_ms(),
            },
            commit_self=commit_self,
        )
