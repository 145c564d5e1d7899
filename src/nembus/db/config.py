"""Database engine construction for the master registry and tenant pools."""

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from nembus.config.settings import Settings

_POSTGRES_BACKENDS = ("postgres", "postgresql")


def to_async_url(conn_str: str) -> URL:
    """Normalize a connection string to an asyncio driver URL.

    Registry rows store libpq-style URLs (``postgres://``); the gateway talks
    to PostgreSQL through asyncpg and to SQLite through aiosqlite.

    Raises:
        sqlalchemy.exc.ArgumentError: If the string is not a database URL
    """
    url = make_url(conn_str)
    backend, _, driver = url.drivername.partition("+")

    if backend in _POSTGRES_BACKENDS:
        query = dict(url.query)
        if "sslmode" in query:
            query["ssl"] = query.pop("sslmode")
        return url.set(drivername="postgresql+asyncpg", query=query)

    if backend == "sqlite" and driver in ("", "pysqlite"):
        return url.set(drivername="sqlite+aiosqlite")

    return url


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_tenant_engine(
    conn_str: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_timeout: float = 30.0,
) -> AsyncEngine:
    """Create a bounded connection pool for one tenant database.

    Args:
        conn_str: Connection string from the tenant registry
        pool_size: Connections kept open in the pool
        max_overflow: Extra connections allowed under load
        pool_timeout: Seconds to wait for a connection checkout

    Returns:
        AsyncEngine owning the tenant's connection pool
    """
    url = to_async_url(conn_str)
    kwargs: dict = {"pool_pre_ping": True}
    if not _is_memory_sqlite(url):
        kwargs.update(pool_size=pool_size, max_overflow=max_overflow, pool_timeout=pool_timeout)
    return create_async_engine(url, **kwargs)


def tenant_engine_factory(settings: Settings):
    """Return a pool factory bound to the configured tenant pool bounds."""

    def factory(conn_str: str) -> AsyncEngine:
        return create_tenant_engine(
            conn_str,
            pool_size=settings.TENANT_POOL_SIZE,
            max_overflow=settings.TENANT_POOL_MAX_OVERFLOW,
            pool_timeout=settings.TENANT_POOL_TIMEOUT,
        )

    return factory


def create_master_engine(settings: Settings) -> AsyncEngine:
    """Create the connection pool for the master registry database.

    Raises:
        ConfigurationError: If MASTER_DB_URL is not set
    """
    url = to_async_url(settings.master_db_url())
    kwargs: dict = {"pool_pre_ping": True}
    if not _is_memory_sqlite(url):
        kwargs.update(pool_size=settings.MASTER_POOL_SIZE, max_overflow=0)
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def verify_connectivity(engine: AsyncEngine) -> None:
    """Check out one connection and run ``SELECT 1``."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
