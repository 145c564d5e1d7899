"""Request context for async-safe per-request tenant binding.

This module propagates the (identity, tenant) pair of a request through the
async call chain using Python's contextvars. The tenant binder creates the
context after authentication; handlers read the tenant-scoped data-access
handle through ``get_data_access``.

Usage:
    from nembus.core.context import create_context, request_context, get_data_access

    ctx = create_context(
        tenant_slug="acme",
        data_access=TenantDataAccess(engine, "acme"),
        user_id="42",
        claims={"user_id": "42", "user_login": "alice"},
    )

    with request_context(ctx):
        data_access = get_data_access()
        async with data_access.session() as session:
            ...
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from nembus.core.exceptions import ContextNotSetError

if TYPE_CHECKING:
    from nembus.db.data_access import TenantDataAccess


class RequestContext(BaseModel):
    """Context for a single request.

    Lifetime equals the request; never shared across requests.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    request_id: UUID = Field(default_factory=uuid4)

    # Identity (absent on tenant-only routes such as login)
    user_id: str | None = None
    claims: dict[str, Any] = Field(default_factory=dict)

    # Tenant
    tenant_slug: str
    data_access: Any

    initiated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def user_login(self) -> str | None:
        """Login name carried in the token claims, if any."""
        value = self.claims.get("user_login")
        return value if isinstance(value, str) else None


# =============================================================================
# Context Variable Management
# =============================================================================

_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        ContextNotSetError: If no context is set in the current execution context
    """
    ctx = _request_context.get()
    if ctx is None:
        raise ContextNotSetError(
            "No request context is set. Use request_context() context manager."
        )
    return ctx


def get_current_context_or_none() -> RequestContext | None:
    """Get the current request context, or None if not set."""
    return _request_context.get()


def get_data_access() -> "TenantDataAccess":
    """Typed accessor for the tenant-scoped data-access handle.

    Fails closed: there is no process-global handle to fall back to.

    Raises:
        ContextNotSetError: If the tenant binder did not run for this request
    """
    ctx = get_current_context()
    if ctx.data_access is None:
        raise ContextNotSetError("No tenant data-access handle is bound to this request")
    return ctx.data_access


def set_context(ctx: RequestContext) -> Token[RequestContext | None]:
    """Set the request context and return a token for restoration.

    This is a low-level API. Prefer using the request_context() context manager.
    """
    return _request_context.set(ctx)


def reset_context(token: Token[RequestContext | None]) -> None:
    """Reset the context to its previous value using a token."""
    _request_context.reset(token)


@contextmanager
def request_context(ctx: RequestContext):
    """Context manager for setting request context.

    Works for both sync and async code because contextvars are
    automatically propagated to async tasks.

    Args:
        ctx: The context to set for the duration of the block

    Yields:
        The context that was set
    """
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        reset_context(token)


def create_context(
    *,
    tenant_slug: str,
    data_access: "TenantDataAccess",
    user_id: str | None = None,
    claims: dict[str, Any] | None = None,
    request_id: UUID | None = None,
) -> RequestContext:
    """Factory function to create a RequestContext with defaults.

    Args:
        tenant_slug: Slug from the x-tenant-id header
        data_access: Handle bound to the tenant's connection pool
        user_id: Authenticated user id, None on tenant-only routes
        claims: Verified token claims
        request_id: Optional request ID (auto-generated if not provided)

    Returns:
        A new RequestContext instance
    """
    return RequestContext(
        request_id=request_id or uuid4(),
        user_id=user_id,
        claims=dict(claims or {}),
        tenant_slug=tenant_slug,
        data_access=data_access,
    )
