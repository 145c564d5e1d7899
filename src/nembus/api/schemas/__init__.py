"""API request and response schemas."""

from .auth import DevTokenResponse, LoginRequest, MeResponse, TokenResponse
from .errors import ErrorBody, ErrorKind
from .health import HealthResponse, ReadinessResponse
from .response import APIResponse
from .user import UserListResponse, UserResponse

__all__ = [
    "APIResponse",
    "DevTokenResponse",
    "ErrorBody",
    "ErrorKind",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "ReadinessResponse",
    "TokenResponse",
    "UserListResponse",
    "UserResponse",
]
