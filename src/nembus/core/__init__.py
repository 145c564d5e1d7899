"""Core: request context, security primitives and error kinds."""

from .context import (
    RequestContext,
    create_context,
    get_current_context,
    get_current_context_or_none,
    get_data_access,
    request_context,
)
from .exceptions import (
    AuthenticationError,
    ContextNotSetError,
    InvalidCredentialsError,
    JWTSecretNotConfiguredError,
    MissingTenantHeaderError,
    PoolCacheClosedError,
    PoolCreateFailedError,
    RegistryUnavailableError,
    TenantInactiveError,
    TenantNotFoundError,
    TenantResolutionError,
)

__all__ = [
    "RequestContext",
    "create_context",
    "get_current_context",
    "get_current_context_or_none",
    "get_data_access",
    "request_context",
    "AuthenticationError",
    "ContextNotSetError",
    "InvalidCredentialsError",
    "JWTSecretNotConfiguredError",
    "MissingTenantHeaderError",
    "PoolCacheClosedError",
    "PoolCreateFailedError",
    "RegistryUnavailableError",
    "TenantInactiveError",
    "TenantNotFoundError",
    "TenantResolutionError",
]
