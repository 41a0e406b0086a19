"""Structured logging configuration with OpenTelemetry trace context."""

import logging
import sys
from typing import Any, cast

import structlog
from opentelemetry import trace

from src.infrastructure.config import Settings


# Substrings of event keys whose values never reach the log output
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "api_key",
        "token",
        "authorization",
        "credentials",
        "private_key",
        "database_url",
        "broker_url",
    }
)

REDACTED = "***REDACTED***"


def _is_sensitive_key(key: str) -> bool:
    normalized = key.lower().replace("-", "_").replace(".", "_")
    return any(pattern in normalized for pattern in SENSITIVE_PATTERNS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_sensitive_key(str(key)) else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def sanitize_sensitive_data(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact sensitive fields (actor tokens, keys, credentials) from log events.

    Args:
        logger: Logger instance (unused)
        method_name: Method name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    return cast("dict[str, Any]", _redact(event_dict))


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add OpenTelemetry trace context to log events.

    Only trace_id, span_id and trace_flags are added, for correlating the
    log lines of one request or one cascade.
    """
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        span_context = span.get_span_context()
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
        event_dict["trace_flags"] = format(span_context.trace_flags, "02x")
    return event_dict


def configure_logging(settings: Settings) -> None:
    """Configure structured logging with trace context."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        sanitize_sensitive_data,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.is_development:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=cast("Any", processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
