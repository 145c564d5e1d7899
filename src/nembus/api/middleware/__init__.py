"""API middleware components."""

from .auth import AuthenticationMiddleware
from .cors import PermissiveCORSMiddleware
from .errors import ErrorHandlingMiddleware, error_response
from .logging import RequestLoggingMiddleware
from .tenant import TenantBindingMiddleware

__all__ = [
    "AuthenticationMiddleware",
    "ErrorHandlingMiddleware",
    "PermissiveCORSMiddleware",
    "RequestLoggingMiddleware",
    "TenantBindingMiddleware",
    "error_response",
]
