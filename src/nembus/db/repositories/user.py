"""Repository for tenant user accounts."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nembus.db.models.tenant import User


class UserRepository:
    """Read access to the ``users`` table of one tenant database.

    The session must come from the tenant's data-access handle; the
    repository has no notion of which tenant it is reading.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by login name (exact match).

        Args:
            username: Login name submitted at sign-in

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[User]:
        """List users ordered by id."""
        stmt = select(User).order_by(User.id).limit(limit).offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar() or 0
