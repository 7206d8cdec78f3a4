from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.crud.base import BaseDB
from app.core.db.models.profile import Profile


class ProfileDB(BaseDB[Profile]):
    def __init__(self):
        super().__init__(model=Profile)

    async def get_or_create(
        self,
        session: AsyncSession,
        phone_number: str,
        commit_self: bool = True,
    ) -> tuple[Profile, bool]:
        """
        Return the profile of ``phone_number``, creating an incomplete one if absent.

        Concurrent first logins for the same number both succeed; exactly
        one of them reports the profile as created.

        Returns:
            A tuple of (profile, created).
        """
        created = await self.insert_if_absent(
            session,
            data={"phone_number": phone_number, "is_complete": False},
            commit_self=commit_self,
        )
        profile = await self.get_by_key(session, phone_number)
        return profile, created
