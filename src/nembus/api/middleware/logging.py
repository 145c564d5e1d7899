"""Request logging middleware."""

import asyncio
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from nembus.core.logging import bind_contextvars, clear_contextvars, get_logger

logger = get_logger("nembus.api.requests")

# Status recorded when the client goes away before a response is produced
CLIENT_CLOSED_REQUEST = 499


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request on arrival and on completion.

    The completion entry carries method, path with query, client IP, status,
    elapsed time and, when the inner layers recorded them, the error kind,
    tenant slug and user id.

    Sets:
        request.state.request_id: Correlation id for this request
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = uuid4()
        request.state.request_id = request_id

        clear_contextvars()
        bind_contextvars(request_id=str(request_id))

        request_meta = self._capture_request_metadata(request)
        logger.info("request_started", **request_meta)

        try:
            response = await call_next(request)
        except asyncio.CancelledError:
            self._log_request(request, CLIENT_CLOSED_REQUEST, request_meta, start_time)
            raise

        self._log_request(request, response.status_code, request_meta, start_time)
        response.headers["X-Request-ID"] = str(request_id)
        return response

    def _capture_request_metadata(self, request: Request) -> dict:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        return {
            "method": request.method,
            "path": path,
            "client_ip": self._get_client_ip(request),
        }

    def _get_client_ip(self, request: Request) -> str | None:
        """Extract client IP from request, considering proxy headers."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return None

    def _log_request(
        self,
        request: Request,
        status_code: int,
        request_meta: dict,
        start_time: float,
    ) -> None:
        duration_ms = (time.perf_counter() - start_time) * 1000
        state = request.state

        log_data = {
            **request_meta,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }
        for key in ("tenant_slug", "user_id", "error_kind", "error_summary"):
            value = getattr(state, key, None)
            if value is not None:
                log_data[key] = value

        if status_code >= 500:
            logger.error("request_completed", **log_data)
        elif status_code >= 400:
            logger.warning("request_completed", **log_data)
        else:
            logger.info("request_completed", **log_data)
