"""Health check endpoints for monitoring and orchestration.

Provides liveness and readiness probes for Kubernetes/Docker
health checks and load balancer routing decisions.
"""

from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.container import Container
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.persistence.database import Database


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    database: str
    reaper: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "0.1.0",
                    "environment": "production",
                    "database": "healthy",
                    "reaper": "scheduled",
                }
            ]
        }
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health Check",
    description="""
Check if the API and its dependencies are operational.

This endpoint reports:
- Application status
- Database connectivity
- Whether the tombstone reaper is scheduled
    """,
)
@inject
async def health_check(
    database: Annotated[Database, Depends(Provide[Container.database])],
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Health check endpoint using DI container.

    Args:
        database: Injected database instance from DI container
        settings: Application settings

    Returns:
        Health status including database connectivity
    """
    db_status = "healthy" if await database.health_check() else "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=settings.app_version,
        environment=settings.app_env,
        database=db_status,
        reaper="scheduled" if settings.reaper_enabled else "disabled",
    )


@router.get(
    "/",
    status_code=status.HTTP_200_OK,
    summary="API Root",
)
async def root(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Root endpoint providing API information and navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "docs": settings.docs_url,
        "health": "/health",
    }
