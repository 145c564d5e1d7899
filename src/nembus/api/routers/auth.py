"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from nembus.api.dependencies import get_request_context, get_tenant_data_access, get_token_service
from nembus.api.schemas.auth import LoginRequest, MeResponse, TokenResponse
from nembus.api.schemas.errors import ErrorBody
from nembus.core.auth import AuthService
from nembus.core.context import RequestContext
from nembus.core.security import TokenService
from nembus.db.data_access import TenantDataAccess

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    description="Exchange a tenant user's login and password for a bearer token.",
    responses={
        400: {"model": ErrorBody},
        401: {"model": ErrorBody},
        404: {"model": ErrorBody},
    },
)
async def login(
    body: LoginRequest,
    data_access: Annotated[TenantDataAccess, Depends(get_tenant_data_access)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenResponse:
    token = await AuthService(data_access, tokens).login(body.user_login, body.password)
    return TokenResponse(token=token)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current identity",
    responses={401: {"model": ErrorBody}},
)
async def me(ctx: Annotated[RequestContext, Depends(get_request_context)]) -> MeResponse:
    """Return the identity and tenant bound to this request."""
    return MeResponse(
        user_id=ctx.user_id,
        user_login=ctx.user_login,
        tenant_slug=ctx.tenant_slug,
        issued_at=ctx.claims.get("iat"),
        expires_at=ctx.claims.get("exp"),
    )
