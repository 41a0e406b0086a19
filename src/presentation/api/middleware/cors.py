"""CORS middleware configuration.

Browsers calling the lifecycle API must be able to send the actor token
and read the trace id back, whatever the configured header lists say.
"""

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from src.infrastructure.config import Settings
from src.presentation.api.middleware.request_context import TRACE_HEADER


ACTOR_TOKEN_HEADER = "X-Actor-Token"


def _with(headers: list[str], required: str) -> list[str]:
    if any(h.lower() == required.lower() for h in headers) or "*" in headers:
        return list(headers)
    return [*headers, required]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=_with(settings.cors_allow_headers, ACTOR_TOKEN_HEADER),
        expose_headers=_with(settings.cors_expose_headers, TRACE_HEADER),
    )
