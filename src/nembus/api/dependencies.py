"""FastAPI dependencies for API endpoints."""

from fastapi import Request

from nembus.config.settings import Settings
from nembus.core.context import RequestContext, get_current_context, get_data_access
from nembus.core.security import TokenService
from nembus.db.data_access import TenantDataAccess
from nembus.db.pool_cache import PoolCache
from nembus.db.registry import TenantRegistry


async def get_request_context() -> RequestContext:
    """Get the current request context.

    Raises:
        ContextNotSetError: If TenantBindingMiddleware did not run
    """
    return get_current_context()


async def get_tenant_data_access() -> TenantDataAccess:
    """Get the data-access handle bound to the request's tenant.

    Raises:
        ContextNotSetError: If no tenant is bound (fails closed)
    """
    return get_data_access()


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_pool_cache(request: Request) -> PoolCache:
    return request.app.state.pool_cache


def get_registry(request: Request) -> TenantRegistry:
    return request.app.state.registry
