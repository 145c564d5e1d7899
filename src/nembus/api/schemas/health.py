"""Health check response schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(default="OK", description="Always OK while the process serves requests")


class ReadinessResponse(BaseModel):
    """Readiness response with dependency status."""

    status: str = Field(..., description="OK when the master registry is reachable")
    master_db: str = Field(..., description="Master registry connectivity")
    tenant_pools: int = Field(..., description="Number of live tenant pools")
    latency_ms: float | None = None

    model_config = {"json_schema_extra": {"example": {
        "status": "OK",
        "master_db": "ok",
        "tenant_pools": 3,
        "latency_ms": 1.2,
    }}}
