"""
CareerHub - HTTP Middleware
Request logging with request ids, and request body size limits.
"""

import logging
import time
from typing import Callable, Set

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.datastructures import Headers
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from careerhub.core.logging_config import set_request_id, generate_request_id

logger = logging.getLogger(__name__)

# Paths that skip per-request logging
SKIP_LOGGING_PATHS: Set[str] = {
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration for every request and tags the
    response with X-Request-ID.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        skip_logging = path in SKIP_LOGGING_PATHS
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id

        if not skip_logging:
            status_code = response.status_code
            if status_code >= 500:
                log_func = logger.error
            elif status_code >= 400:
                log_func = logger.warning
            else:
                log_func = logger.info
            log_func(
                f"{request.method} {path} - {status_code} ({duration_ms:.2f}ms)",
                extra={
                    "event_type": "http_request",
                    "http_method": request.method,
                    "http_path": path,
                    "http_status": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": request.client.host if request.client else "unknown",
                }
            )

        return response


class PayloadTooLarge(Exception):
    """Raised from receive() once a streamed body passes the limit."""


class RequestSizeLimitMiddleware:
    """
    Middleware to limit request body size.

    A declared Content-Length over the limit is rejected up front. Bodies
    without one (chunked) are counted as they are received; once the count
    passes the limit whatever the app produced is dropped and a 413 is sent.
    """

    def __init__(self, app: ASGIApp, max_size: int = 10 * 1024 * 1024):  # 10MB default
        self.app = app
        self.max_size = max_size

    def _too_large(self, path: str, size) -> JSONResponse:
        logger.warning(
            f"Request body too large: {size} bytes (max: {self.max_size})",
            extra={"event_type": "request_too_large", "http_path": path}
        )
        return JSONResponse(
            status_code=413,
            content={
                "error": "PAYLOAD_TOO_LARGE",
                "message": f"Request body too large. Maximum size is {self.max_size} bytes",
            }
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            await self._too_large(path, content_length)(scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_size:
                    exceeded = True
                    raise PayloadTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            # Body parsers may wrap PayloadTooLarge in their own error
            if not exceeded:
                raise

        if exceeded and not response_started:
            await self._too_large(path, f">{self.max_size}")(scope, receive, send)
