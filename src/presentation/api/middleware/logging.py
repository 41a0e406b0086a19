"""HTTP request/response logging middleware.

Logs every request with its status and duration. Server errors are logged
at error level, client errors at warning level.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)

# Probes are polled continuously
QUIET_PATHS = frozenset({"/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request/response logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        if request.url.path in QUIET_PATHS and response.status_code < 400:
            return response

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            query=request.url.query or None,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response
