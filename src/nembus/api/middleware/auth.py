"""Bearer token authentication middleware."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from nembus.api.middleware.errors import record_error
from nembus.api.policies import policy_for
from nembus.core.exceptions import AuthenticationError, JWTSecretNotConfiguredError
from nembus.core.logging import bind_contextvars
from nembus.core.security import TokenService


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Validates the Authorization header on routes whose policy needs auth.

    Sets:
        request.state.user_id: ``user_id`` claim of the verified token
        request.state.claims: All verified claims
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not policy_for(request.url.path).auth:
            return await call_next(request)

        tokens: TokenService = request.app.state.token_service
        try:
            claims = tokens.verify(request.headers.get("Authorization"))
        except (AuthenticationError, JWTSecretNotConfiguredError) as exc:
            return record_error(request, exc)

        request.state.user_id = claims["user_id"]
        request.state.claims = claims
        bind_contextvars(user_id=claims["user_id"])

        return await call_next(request)
