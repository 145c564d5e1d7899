"""Health check endpoints."""

import time
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nembus.api.dependencies import get_pool_cache, get_registry
from nembus.api.schemas.health import HealthResponse, ReadinessResponse
from nembus.core.exceptions import RegistryUnavailableError
from nembus.db.pool_cache import PoolCache
from nembus.db.registry import TenantRegistry

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns liveness status. No authentication or tenant required.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="OK")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Checks master registry connectivity and reports live tenant pools.",
    responses={503: {"model": ReadinessResponse}},
)
async def health_ready(
    registry: Annotated[TenantRegistry, Depends(get_registry)],
    pool_cache: Annotated[PoolCache, Depends(get_pool_cache)],
):
    """Readiness probe.

    Returns 503 when the master registry cannot be reached, since no new
    tenant could be resolved.
    """
    start = time.perf_counter()
    try:
        await registry.ping()
    except RegistryUnavailableError:
        body = ReadinessResponse(
            status="UNAVAILABLE",
            master_db="unreachable",
            tenant_pools=len(pool_cache),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    return ReadinessResponse(
        status="OK",
        master_db="ok",
        tenant_pools=len(pool_cache),
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )
