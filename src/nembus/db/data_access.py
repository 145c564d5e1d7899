"""Tenant-scoped data-access handle injected into each request."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from nembus.db.config import create_session_factory


class TenantDataAccess:
    """Handle bound to exactly one tenant's connection pool.

    Handlers borrow a connection through ``session()``; the connection goes
    back to the pool when the block exits.

    Example:
        data_access = get_data_access()
        async with data_access.session() as session:
            user = await UserRepository(session).get(42)
    """

    def __init__(self, engine: AsyncEngine, slug: str):
        self.engine = engine
        self.slug = slug
        self._session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, committing on success and rolling back on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def __repr__(self) -> str:
        return f"<TenantDataAccess(slug={self.slug})>"
