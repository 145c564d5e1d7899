"""Error handling middleware for mapping exceptions to HTTP responses."""

from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from nembus.api.schemas.errors import ErrorBody, ErrorKind
from nembus.core.exceptions import (
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
)
from nembus.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR = "internal server error"

# Exception -> (status_code, kind, public message)
EXCEPTION_MAP: dict[type[Exception], tuple[int, str, str]] = {
    MissingTenantHeaderError: (400, ErrorKind.MISSING_TENANT_HEADER, "x-tenant-id header required"),
    TenantNotFoundError: (404, ErrorKind.TENANT_NOT_FOUND, "tenant not found"),
    TenantInactiveError: (404, ErrorKind.TENANT_INACTIVE, "tenant is inactive"),
    RegistryUnavailableError: (500, ErrorKind.REGISTRY_UNAVAILABLE, INTERNAL_ERROR),
    PoolCreateFailedError: (500, ErrorKind.POOL_CREATE_FAILED, INTERNAL_ERROR),
    PoolCacheClosedError: (503, ErrorKind.SHUTTING_DOWN, "service unavailable"),
    AuthenticationError: (401, ErrorKind.UNAUTHORIZED, "Invalid token"),
    JWTSecretNotConfiguredError: (500, ErrorKind.CONFIGURATION, "JWT_SECRET not configured"),
    InvalidCredentialsError: (401, ErrorKind.INVALID_CREDENTIALS, "invalid credentials"),
    ContextNotSetError: (500, ErrorKind.CONTEXT_NOT_SET, INTERNAL_ERROR),
}

# Kinds whose bodies carry the kind field
_KIND_IN_BODY = {
    ErrorKind.TENANT_NOT_FOUND,
    ErrorKind.TENANT_INACTIVE,
    ErrorKind.REGISTRY_UNAVAILABLE,
    ErrorKind.POOL_CREATE_FAILED,
    ErrorKind.SHUTTING_DOWN,
}


def map_exception(exc: Exception) -> tuple[int, str, str]:
    """Find the mapping for an exception, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_MAP:
            return EXCEPTION_MAP[cls]
    return 500, ErrorKind.INTERNAL, INTERNAL_ERROR


def error_response(exc: Exception) -> JSONResponse:
    """Convert an exception to the gateway error response.

    This is the only place exceptions become HTTP statuses and bodies.
    """
    status_code, kind, message = map_exception(exc)
    body = ErrorBody(error=message)
    headers: dict[str, str] = {}

    if isinstance(exc, AuthenticationError):
        body = ErrorBody(error=exc.reason, details=exc.details)
        headers["WWW-Authenticate"] = "Bearer"
    elif kind in _KIND_IN_BODY:
        body.kind = kind
        if status_code < 500:
            body.slug = getattr(exc, "slug", None)

    return JSONResponse(status_code=status_code, content=body.to_content(), headers=headers or None)


def record_error(request: Request, exc: Exception) -> JSONResponse:
    """Build the error response and note its kind for the request log."""
    status_code, kind, _ = map_exception(exc)
    request.state.error_kind = kind
    request.state.error_summary = str(exc)

    log = logger.bind(kind=kind, status_code=status_code, path=request.url.path)
    if status_code >= 500:
        log.error("request_failed", error=str(exc), exc_info=kind == ErrorKind.INTERNAL)
    else:
        log.info("request_rejected", error=str(exc))

    return error_response(exc)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Anything escaping the inner layers, known or not, goes through
    ``error_response``; unknown exceptions become a generic 500.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return record_error(request, exc)


async def nembus_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for errors raised inside route handlers."""
    return record_error(request, exc)
