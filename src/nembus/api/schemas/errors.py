"""Error body emitted by the gateway layers (auth, tenant binding, login)."""

from pydantic import BaseModel, Field


class ErrorKind:
    """Machine-readable error kinds carried in ``ErrorBody.kind``."""

    TENANT_NOT_FOUND = "tenant_not_found"
    TENANT_INACTIVE = "tenant_inactive"
    REGISTRY_UNAVAILABLE = "registry_unavailable"
    POOL_CREATE_FAILED = "pool_create_failed"
    SHUTTING_DOWN = "shutting_down"
    CONTEXT_NOT_SET = "context_not_set"
    MISSING_TENANT_HEADER = "missing_tenant_header"
    UNAUTHORIZED = "unauthorized"
    CONFIGURATION = "configuration"
    INVALID_CREDENTIALS = "invalid_credentials"
    INTERNAL = "internal_error"


class ErrorBody(BaseModel):
    """Gateway error format: ``{error, details?, kind?, slug?}``.

    Absent fields are left out of the serialized body. Bodies never carry
    tokens, passwords or connection strings.
    """

    error: str = Field(..., description="Human-readable error message")
    details: str | None = Field(default=None, description="Failure category")
    kind: str | None = Field(default=None, description="Machine-readable error kind")
    slug: str | None = Field(default=None, description="Tenant slug the error refers to")

    model_config = {"json_schema_extra": {"example": {
        "error": "tenant not found",
        "kind": "tenant_not_found",
        "slug": "acme",
    }}}

    def to_content(self) -> dict:
        return self.model_dump(exclude_none=True)
