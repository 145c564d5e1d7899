"""Database layer: master registry, tenant pools and tenant data access."""

from .data_access import TenantDataAccess
from .pool_cache import PoolCache, PoolEntry
from .registry import TenantDescriptor, TenantRegistry

__all__ = [
    "PoolCache",
    "PoolEntry",
    "TenantDataAccess",
    "TenantDescriptor",
    "TenantRegistry",
]
