from fastapi import APIRouter

from src.presentation.api.v1.endpoints import health, lifecycle, maintenance


api_router = APIRouter()

# Include routers
api_router.include_router(health.router)
api_router.include_router(lifecycle.router)
api_router.include_router(maintenance.router)
