"""Core exceptions for tenant resolution, authentication and request context."""

from nembus.utils.exceptions import ConfigurationError, NembusError


class ContextNotSetError(NembusError):
    """Raised when attempting to access request context that is not set.

    Handlers that need the tenant data-access handle go through a typed
    accessor; when the tenant binder never ran for the request the accessor
    raises this instead of falling back to any process-global handle.
    """

    def __init__(self, message: str = "Request context is not set"):
        super().__init__(message)


class MissingTenantHeaderError(NembusError):
    """Raised when a tenant-scoped request carries no x-tenant-id header."""

    def __init__(self, message: str = "x-tenant-id header required"):
        super().__init__(message)


class TenantResolutionError(NembusError):
    """Base class for failures resolving a tenant slug to a connection pool.

    Attributes:
        slug: The tenant slug that failed to resolve
    """

    def __init__(self, slug: str, message: str):
        super().__init__(message)
        self.slug = slug


class TenantNotFoundError(TenantResolutionError):
    """Raised when no tenant with the given slug exists in the registry."""

    def __init__(self, slug: str):
        super().__init__(slug, f"Tenant not found: {slug}")

    def __str__(self) -> str:
        return f"TenantNotFoundError: {self.args[0]}"


class TenantInactiveError(TenantResolutionError):
    """Raised when the tenant exists but is not active (false or NULL)."""

    def __init__(self, slug: str):
        super().__init__(slug, f"Tenant is inactive: {slug}")

    def __str__(self) -> str:
        return f"TenantInactiveError: {self.args[0]}"


class RegistryUnavailableError(TenantResolutionError):
    """Raised when the master registry cannot be queried.

    Attributes:
        reason: Short description of the underlying failure (never contains
            connection strings)
    """

    def __init__(self, slug: str, reason: str = "master registry unavailable"):
        super().__init__(slug, f"Tenant registry unavailable while resolving '{slug}': {reason}")
        self.reason = reason


class PoolCreateFailedError(TenantResolutionError):
    """Raised when a connection pool for a tenant database cannot be built.

    The failed pool is never published, so a later request may retry.

    Attributes:
        reason: Short description of the underlying failure (never contains
            connection strings)
    """

    def __init__(self, slug: str, reason: str = "pool creation failed"):
        super().__init__(slug, f"Failed to create connection pool for tenant '{slug}': {reason}")
        self.reason = reason


class PoolCacheClosedError(TenantResolutionError):
    """Raised when a pool is requested after the cache was shut down."""

    def __init__(self, slug: str):
        super().__init__(slug, f"Pool cache is closed; cannot resolve tenant '{slug}'")


class AuthenticationError(NembusError):
    """Raised when a bearer token is missing, malformed, expired or invalid.

    Attributes:
        reason: Fixed category string safe to return to the client
        details: Optional secondary category (never token contents)
    """

    def __init__(self, reason: str = "Invalid token", details: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details

    def __str__(self) -> str:
        return f"AuthenticationError: {self.args[0]}"


class JWTSecretNotConfiguredError(ConfigurationError):
    """Raised when tokens must be signed or verified but JWT_SECRET is empty."""

    def __init__(self, message: str = "JWT_SECRET not configured"):
        super().__init__(message)


class InvalidCredentialsError(NembusError):
    """Raised on any login failure.

    Unknown user, inactive user, missing password hash and wrong password all
    raise this same error so callers cannot tell them apart.
    """

    def __init__(self):
        super().__init__("invalid credentials")
