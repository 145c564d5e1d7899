"""Process-wide cache of tenant connection pools keyed by tenant slug.

Pools are created lazily on the first request for a tenant and kept for the
lifetime of the process. Creation is single-flight per slug: concurrent cold
requests for the same tenant share one registry lookup and one pool.

State machine per slug:

    Absent --(first request)--> Creating --(published)--> Live --(close_all)--> Released
                                    |
                                    +--(failure)--> Absent
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncEngine

from nembus.core.exceptions import (
    PoolCacheClosedError,
    PoolCreateFailedError,
    RegistryUnavailableError,
    TenantInactiveError,
)
from nembus.core.logging import get_logger
from nembus.db.config import create_tenant_engine, verify_connectivity
from nembus.db.registry import TenantDescriptor, TenantRegistry

logger = get_logger(__name__)

DEFAULT_RESOLVE_TIMEOUT = 10.0

PoolFactory = Callable[[str], AsyncEngine]


@dataclass(frozen=True)
class PoolEntry:
    """A published tenant pool."""

    slug: str
    engine: AsyncEngine
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class PoolCache:
    """Maps tenant slugs to live connection pools.

    All state is touched only from the event loop thread, so dictionary
    operations between awaits need no lock.

    Usage:
        cache = PoolCache(registry, pool_factory=tenant_engine_factory(settings))
        engine = await cache.get_or_create("acme")
        ...
        await cache.close_all()
    """

    def __init__(
        self,
        registry: TenantRegistry,
        pool_factory: PoolFactory | None = None,
        resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT,
        verify_pools: bool = True,
    ):
        """Initialize the cache.

        Args:
            registry: Registry used to resolve slugs on a cache miss
            pool_factory: Builds an engine from a connection string
            resolve_timeout: Deadline in seconds for the slow path
            verify_pools: Run ``SELECT 1`` on a new pool before publishing it
        """
        self.registry = registry
        self.pool_factory = pool_factory or create_tenant_engine
        self.resolve_timeout = resolve_timeout
        self.verify_pools = verify_pools
        self._entries: dict[str, PoolEntry] = {}
        self._inflight: dict[str, asyncio.Task[AsyncEngine]] = {}
        self._closed = False

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def __contains__(self, slug: object) -> bool:
        return slug in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, slug: str) -> PoolEntry | None:
        """Return the published entry for a slug without creating one."""
        return self._entries.get(slug)

    def slugs(self) -> list[str]:
        """Slugs with a published pool."""
        return sorted(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def get_or_create(self, slug: str, timeout: float | None = None) -> AsyncEngine:
        """Return the pool for a tenant, creating it on first use.

        Once a pool is published for a slug, every later call returns that
        same engine object until ``close_all``.

        Args:
            slug: Tenant slug
            timeout: Override for the slow-path deadline

        Returns:
            The tenant's AsyncEngine

        Raises:
            TenantNotFoundError: If the slug is not registered
            TenantInactiveError: If the tenant is not active
            RegistryUnavailableError: If the registry query fails or times out
            PoolCreateFailedError: If the pool cannot be built or connected
            PoolCacheClosedError: If the cache has been shut down
        """
        if self._closed:
            raise PoolCacheClosedError(slug)

        entry = self._entries.get(slug)
        if entry is not None:
            return entry.engine

        task = self._inflight.get(slug)
        if task is None:
            task = asyncio.create_task(
                self._create(slug, timeout if timeout is not None else self.resolve_timeout),
                name=f"tenant-pool-{slug}",
            )
            self._inflight[slug] = task
            task.add_done_callback(lambda t, s=slug: self._forget(s, t))

        # Shielded so one cancelled waiter does not abort creation for the others
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            waiter_cancelled = current is not None and current.cancelling() > 0
            if self._closed and task.cancelled() and not waiter_cancelled:
                raise PoolCacheClosedError(slug) from None
            raise

    def _forget(self, slug: str, task: asyncio.Task) -> None:
        if self._inflight.get(slug) is task:
            del self._inflight[slug]
        # Failures are delivered to waiters; this marks them retrieved for tasks nobody awaited
        if not task.cancelled():
            task.exception()

    async def _create(self, slug: str, timeout: float) -> AsyncEngine:
        log = logger.bind(slug=slug)
        descriptor = await self._lookup(slug, timeout)

        if not descriptor.is_servable:
            raise TenantInactiveError(slug)

        engine = await self._build(descriptor, timeout)

        if self._closed:
            await engine.dispose()
            raise PoolCacheClosedError(slug)

        entry = self._entries.setdefault(slug, PoolEntry(slug=slug, engine=engine))
        if entry.engine is not engine:
            log.info("tenant_pool_race_lost")
            await engine.dispose()
            return entry.engine

        log.info("tenant_pool_published", pools=len(self._entries))
        return engine

    async def _lookup(self, slug: str, timeout: float) -> TenantDescriptor:
        try:
            async with asyncio.timeout(timeout):
                return await self.registry.lookup_active(slug)
        except TimeoutError as e:
            raise RegistryUnavailableError(slug, "registry lookup timed out") from e

    async def _build(self, descriptor: TenantDescriptor, timeout: float) -> AsyncEngine:
        slug = descriptor.slug
        try:
            engine = self.pool_factory(descriptor.connection_string.get_secret_value())
        except Exception as e:
            logger.warning("tenant_pool_create_failed", slug=slug, reason=type(e).__name__)
            raise PoolCreateFailedError(slug, type(e).__name__) from e

        try:
            if self.verify_pools:
                async with asyncio.timeout(timeout):
                    await verify_connectivity(engine)
        except asyncio.CancelledError:
            await engine.dispose()
            raise
        except TimeoutError as e:
            await engine.dispose()
            logger.warning("tenant_pool_create_failed", slug=slug, reason="timeout")
            raise PoolCreateFailedError(slug, "connection timed out") from e
        except Exception as e:
            await engine.dispose()
            logger.warning("tenant_pool_create_failed", slug=slug, reason=type(e).__name__)
            raise PoolCreateFailedError(slug, type(e).__name__) from e

        return engine

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def close_all(self) -> None:
        """Release every pool and refuse further resolution.

        In-flight creations are cancelled; any engine they built is disposed
        before it can be published, and requests waiting on them get
        ``PoolCacheClosedError``.
        """
        self._closed = True

        pending = list(self._inflight.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await entry.engine.dispose()

        logger.info("tenant_pools_closed", pools=len(entries))
