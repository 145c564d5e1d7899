"""API routers."""

from .auth import router as auth_router
from .dev import router as dev_router
from .health import router as health_router
from .users import router as users_router

__all__ = ["auth_router", "dev_router", "health_router", "users_router"]
