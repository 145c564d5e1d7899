"""Tenant registry model in the master database."""

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import MasterBase, PortableJSON, PortableUUID, TimestampMixin


class Tenant(TimestampMixin, MasterBase):
    """Tenant registry row.

    Each row maps a slug to the connection string of the tenant's isolated
    database. Rows are provisioned out of band; the gateway only reads them.
    """

    __tablename__ = "tenants"

    id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    tenant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    db_conn_str: Mapped[str] = mapped_column(Text, nullable=False)

    # Tri-state: NULL is treated as not active
    is_active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    settings: Mapped[dict[str, Any] | None] = mapped_column(PortableJSON(), nullable=True)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug})>"
