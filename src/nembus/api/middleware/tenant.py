"""Tenant binding middleware."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from nembus.api.middleware.errors import record_error
from nembus.api.policies import policy_for
from nembus.core.context import create_context, request_context
from nembus.core.exceptions import MissingTenantHeaderError, TenantResolutionError
from nembus.core.logging import bind_contextvars
from nembus.db.data_access import TenantDataAccess
from nembus.db.pool_cache import PoolCache

TENANT_HEADER = "x-tenant-id"


class TenantBindingMiddleware(BaseHTTPMiddleware):
    """Resolves ``x-tenant-id`` to a connection pool and binds it to the request.

    Runs after authentication, so the request context pairs the verified
    identity with the tenant. The slug is matched case-sensitively.

    Requires:
        request.state.user_id, request.state.claims: Set by AuthenticationMiddleware
            on protected routes

    Sets:
        request.state.tenant_slug: The resolved slug
        request.state.data_access: TenantDataAccess bound to the tenant's pool
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not policy_for(request.url.path).tenant:
            return await call_next(request)

        slug = request.headers.get(TENANT_HEADER)
        if not slug or not slug.strip():
            return record_error(request, MissingTenantHeaderError())

        # Set before resolution so failures are logged with the slug
        request.state.tenant_slug = slug

        pool_cache: PoolCache = request.app.state.pool_cache
        try:
            engine = await pool_cache.get_or_create(slug)
        except TenantResolutionError as exc:
            return record_error(request, exc)

        data_access = TenantDataAccess(engine, slug)
        request.state.data_access = data_access
        bind_contextvars(tenant_slug=slug)

        ctx = create_context(
            tenant_slug=slug,
            data_access=data_access,
            user_id=getattr(request.state, "user_id", None),
            claims=getattr(request.state, "claims", None),
            request_id=getattr(request.state, "request_id", None),
        )

        with request_context(ctx):
            return await call_next(request)
