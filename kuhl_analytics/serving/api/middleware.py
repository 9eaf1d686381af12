"""
API Middleware

Every request gets an id that is bound into structlog's context, so the
import and merge log lines it triggers can be traced back to it. Health
checks log at debug to keep the access log readable.
"""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PREFIXES = ("/api/v1/health",)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id, time the request and echo both back as headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        path = request.url.path
        log = logger.debug if path.startswith(QUIET_PREFIXES) else logger.info
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(request_id=request_id, path=path):
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            log(
                "Handled request",
                method=request.method,
                status=response.status_code,
                elapsed_ms=elapsed_ms,
                upload_bytes=request.headers.get("content-length"),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
        return response
