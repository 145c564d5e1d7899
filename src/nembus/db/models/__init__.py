"""Database models."""

from .base import MasterBase, PortableJSON, PortableUUID, TenantBase, TimestampMixin
from .master import Tenant
from .tenant import User

__all__ = [
    "MasterBase",
    "TenantBase",
    "PortableJSON",
    "PortableUUID",
    "TimestampMixin",
    "Tenant",
    "User",
]
