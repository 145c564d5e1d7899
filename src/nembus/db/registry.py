"""Read-only adapter over the master tenant registry."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nembus.core.exceptions import (
    RegistryUnavailableError,
    TenantInactiveError,
    TenantNotFoundError,
)
from nembus.core.logging import get_logger
from nembus.core.secrets import ConnectionString
from nembus.db.models.master import Tenant

logger = get_logger(__name__)


@dataclass(frozen=True)
class TenantDescriptor:
    """Registry row as seen by the gateway.

    ``connection_string`` masks its password when converted to a string.
    """

    id: UUID
    slug: str
    display_name: str
    connection_string: ConnectionString
    active: bool | None
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_servable(self) -> bool:
        """Only an explicit true is active; NULL is not."""
        return self.active is True

    @classmethod
    def from_model(cls, tenant: Tenant) -> "TenantDescriptor":
        return cls(
            id=tenant.id,
            slug=tenant.slug,
            display_name=tenant.tenant_name,
            connection_string=ConnectionString(tenant.db_conn_str),
            active=tenant.is_active,
            settings=dict(tenant.settings or {}),
            created_at=tenant.created_at,
            updated_at=tenant.updated_at,
        )


class TenantRegistry:
    """Queries the master database for tenant descriptors.

    The gateway never writes to the registry; tenants are provisioned out of
    band.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize the registry.

        Args:
            session_factory: Session factory bound to the master engine
        """
        self.session_factory = session_factory

    async def lookup_active(self, slug: str) -> TenantDescriptor:
        """Resolve a slug to an active tenant descriptor.

        The slug is matched exactly (case-sensitive).

        Args:
            slug: Tenant slug from the x-tenant-id header

        Returns:
            Descriptor of an active tenant

        Raises:
            TenantNotFoundError: If no tenant has this slug
            TenantInactiveError: If the tenant is inactive or its status is NULL
            RegistryUnavailableError: If the master database cannot be queried
        """
        descriptor = await self.lookup(slug)
        if descriptor is None:
            raise TenantNotFoundError(slug)
        if not descriptor.is_servable:
            raise TenantInactiveError(slug)
        return descriptor

    async def lookup(self, slug: str) -> TenantDescriptor | None:
        """Look up a tenant regardless of its status.

        Raises:
            RegistryUnavailableError: If the master database cannot be queried
        """
        query = select(Tenant).where(Tenant.slug == slug)
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                tenant = result.scalar_one_or_none()
                return TenantDescriptor.from_model(tenant) if tenant is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable(slug, e) from e

    async def list_tenants(self) -> list[TenantDescriptor]:
        """List every tenant ordered by slug.

        Raises:
            RegistryUnavailableError: If the master database cannot be queried
        """
        query = select(Tenant).order_by(Tenant.slug)
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [TenantDescriptor.from_model(t) for t in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("*", e) from e

    async def ping(self) -> None:
        """Run ``SELECT 1`` against the master database.

        Raises:
            RegistryUnavailableError: If the master database cannot be reached
        """
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("*", e) from e

    @staticmethod
    def _unavailable(slug: str, exc: Exception) -> RegistryUnavailableError:
        # Driver messages can embed the DSN; only the exception type is kept
        reason = type(exc).__name__
        logger.warning("tenant_registry_query_failed", slug=slug, reason=reason)
        return RegistryUnavailableError(slug, reason)
