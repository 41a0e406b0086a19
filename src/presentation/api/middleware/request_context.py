"""Request context middleware binding a trace id to every log line.

The trace id comes from the active OpenTelemetry span when one is valid
(W3C ``traceparent``), then from an ``X-Request-ID`` sent by the caller,
and is generated as a UUIDv7 otherwise. It is returned in ``X-Trace-ID``.
"""

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from uuid_extension import uuid7


TRACE_HEADER = "X-Trace-ID"
REQUEST_ID_HEADER = "X-Request-ID"


def resolve_trace_id(request: Request) -> str:
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    if request_id := request.headers.get(REQUEST_ID_HEADER):
        return request_id[:128]
    return str(uuid7())


def client_ip(request: Request) -> str:
    """Leftmost X-Forwarded-For address, else the peer address."""
    if forwarded := request.headers.get("X-Forwarded-For"):
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind trace id, client address and route to the structlog context."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        trace_id = resolve_trace_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            trace_id=trace_id,
            client_ip=client_ip(request),
            method=request.method,
            path=request.url.path,
        )
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response
