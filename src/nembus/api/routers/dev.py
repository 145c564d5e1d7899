"""Development-only endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nembus.api.dependencies import get_settings_dep, get_token_service
from nembus.api.schemas.auth import DevTokenResponse
from nembus.api.schemas.errors import ErrorBody
from nembus.config.settings import Settings
from nembus.core.security import TokenService

DEV_TOKEN_NOTE = "This is a development token. Set ENV=development to use this endpoint."

router = APIRouter(prefix="/dev", tags=["dev"])


@router.get(
    "/token",
    response_model=DevTokenResponse,
    summary="Get development token",
    description="Mint a token for the configured dev user. Development mode only.",
    responses={403: {"model": ErrorBody}, 500: {"model": ErrorBody}},
)
async def get_dev_token(
    settings: Annotated[Settings, Depends(get_settings_dep)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
):
    if not settings.is_development:
        body = ErrorBody(error="dev token endpoint only available in development mode")
        return JSONResponse(status_code=403, content=body.to_content())

    token = tokens.mint(settings.DEV_USER_ID, settings.DEV_USER_LOGIN)
    return DevTokenResponse(
        token=token,
        user_id=settings.DEV_USER_ID,
        user_login=settings.DEV_USER_LOGIN,
        note=DEV_TOKEN_NOTE,
    )
