"""CORS middleware."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

ALLOWED_ORIGIN = "*"
ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Authorization", "Content-Type", "x-tenant-id")


class PermissiveCORSMiddleware(BaseHTTPMiddleware):
    """Adds permissive CORS headers and answers every OPTIONS request.

    Unlike Starlette's CORS middleware, any ``OPTIONS`` request gets 204
    whether or not it is a well-formed preflight, and before authentication
    or tenant binding run.
    """

    def __init__(
        self,
        app,
        allow_origin: str = ALLOWED_ORIGIN,
        allow_methods: tuple[str, ...] = ALLOWED_METHODS,
        allow_headers: tuple[str, ...] = ALLOWED_HEADERS,
    ):
        super().__init__(app)
        self.headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=self.headers)

        response = await call_next(request)
        response.headers.update(self.headers)
        return response
