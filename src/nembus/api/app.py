"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from nembus.api.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    PermissiveCORSMiddleware,
    RequestLoggingMiddleware,
    TenantBindingMiddleware,
)
from nembus.api.middleware.errors import nembus_exception_handler
from nembus.api.routers import auth_router, dev_router, health_router, users_router
from nembus.api.schemas.response import APIResponse
from nembus.config.settings import Settings, get_settings
from nembus.config.validation import get_configuration_summary
from nembus.core.logging import get_logger, setup_logging
from nembus.core.security import TokenService
from nembus.db.config import create_master_engine, create_session_factory, tenant_engine_factory
from nembus.db.pool_cache import PoolCache
from nembus.db.registry import TenantRegistry
from nembus.utils.exceptions import NembusError

logger = get_logger("nembus.api")

APP_VERSION = "0.1.0"


def create_app(
    settings: Settings | None = None,
    registry: TenantRegistry | None = None,
    pool_cache: PoolCache | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The master engine, registry and pool cache are built at startup unless
    given here. Whatever the lifespan builds it also releases.

    Args:
        settings: Optional settings override (useful for testing)
        registry: Pre-built tenant registry
        pool_cache: Pre-built pool cache (implies its registry)

    Returns:
        Configured FastAPI application

    Example:
        uvicorn nembus.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="NEMBUS API",
        description="Multi-tenant retail and restaurant operations backend",
        version=APP_VERSION,
        docs_url="/swagger",
        redoc_url=None,
        openapi_url="/swagger/doc.json",
        lifespan=_lifespan,
    )

    app.state.settings = settings
    app.state.token_service = TokenService(settings.jwt_secret())
    app.state.registry = registry if registry is not None else getattr(pool_cache, "registry", None)
    app.state.pool_cache = pool_cache
    app.state.master_engine = None

    _configure_middleware(app)
    _configure_exception_handlers(app)
    _configure_routers(app, settings)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the registry and pool cache on startup; release every pool on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings)

    if app.state.registry is None:
        engine = create_master_engine(settings)
        app.state.master_engine = engine
        app.state.registry = TenantRegistry(create_session_factory(engine))

    if app.state.pool_cache is None:
        app.state.pool_cache = PoolCache(
            app.state.registry,
            pool_factory=tenant_engine_factory(settings),
            resolve_timeout=settings.TENANT_RESOLVE_TIMEOUT,
        )

    logger.info("gateway_started", **get_configuration_summary(settings))

    try:
        yield
    finally:
        logger.info("gateway_stopping", tenant_pools=len(app.state.pool_cache))
        await app.state.pool_cache.close_all()
        if app.state.master_engine is not None:
            await app.state.master_engine.dispose()
            app.state.master_engine = None
        logger.info("gateway_stopped")


def _configure_middleware(app: FastAPI) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. PermissiveCORSMiddleware - Answers OPTIONS, adds CORS headers
    2. RequestLoggingMiddleware - Logs every request
    3. ErrorHandlingMiddleware - Converts escaped exceptions to responses
    4. AuthenticationMiddleware - Verifies the bearer token
    5. TenantBindingMiddleware - Resolves x-tenant-id, sets request context

    Starlette runs the last-added middleware first, so they are added in
    reverse.
    """
    app.add_middleware(TenantBindingMiddleware)
    app.add_middleware(AuthenticationMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(PermissiveCORSMiddleware)


def _configure_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NembusError, nembus_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input becomes a 400 envelope listing the offending fields."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append({"field": field, "message": err.get("msg", "")})
    request.state.error_kind = "invalid_request"
    body = APIResponse.error(400, "invalid request", errors)
    return JSONResponse(status_code=400, content=body.model_dump())


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = APIResponse.error(exc.status_code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


def _configure_routers(app: FastAPI, settings: Settings) -> None:
    """Configure routers and static files.

    The dev router is always routed so production answers 403, but it is
    only documented in development.
    """
    app.include_router(health_router)
    app.include_router(dev_router, include_in_schema=settings.is_development)
    app.include_router(auth_router)
    app.include_router(users_router)

    images_dir = Path(settings.IMAGES_DIR)
    if images_dir.is_dir():
        app.mount("/images", StaticFiles(directory=images_dir), name="images")
