"""Authentication request/response schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for ``POST /api/auth/login``."""

    user_login: str = Field(..., min_length=1, description="Username in the tenant")
    password: str = Field(..., min_length=1, description="Plain-text password")


class TokenResponse(BaseModel):
    token: str = Field(..., description="Signed bearer token")
    type: str = Field(default="Bearer", description="Token type for the Authorization header")


class DevTokenResponse(TokenResponse):
    """Development token with the identity it was minted for."""

    user_id: str
    user_login: str
    note: str


class MeResponse(BaseModel):
    """Identity and tenant bound to the current request."""

    user_id: str
    user_login: str | None = None
    tenant_slug: str
    issued_at: int | None = None
    expires_at: int | None = None
