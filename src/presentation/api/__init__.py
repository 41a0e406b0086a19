"""FastAPI application factory and configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from src.container import Container
from src.infrastructure.config import get_settings
from src.infrastructure.logging.config import configure_logging, get_logger
from src.infrastructure.persistence.reaper import TombstoneReaper
from src.presentation.api.middleware.cors import setup_cors
from src.presentation.api.middleware.error_handling import setup_exception_handlers
from src.presentation.api.middleware.logging import LoggingMiddleware
from src.presentation.api.middleware.request_context import RequestContextMiddleware
from src.presentation.api.v1 import api_router


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan events."""
    container: Container = app.state.container
    settings = container.config()
    database = container.database()

    # Startup
    logger.info("application_startup", app_name=app.title, version=app.version)

    if settings.database_auto_create:
        await database.create_schema()
        logger.info("database_schema_created")

    try:
        created = await TombstoneReaper(database.get_engine()).ensure_expiry_indexes()
        if created:
            logger.info("tombstone_expiry_indexes_created", indexes=created)
    except SQLAlchemyError as e:
        # The reaper still works without its indexes, only slower
        logger.error("tombstone_expiry_indexes_failed", error=str(e))

    yield

    # Shutdown
    await container.event_emitter().close()
    await database.close()
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    # Configure logging (with trace context)
    configure_logging(settings)

    # Create dependency injection container (wired from its wiring_config)
    container = Container()

    # OpenAPI tags for documentation organization
    tags_metadata = [
        {
            "name": "health",
            "description": "Health check and monitoring endpoints.",
        },
        {
            "name": "lifecycle",
            "description": """
Soft delete and restore for every tenant resource.

### Tombstones
Deleting a record never removes it: it is tombstoned (`is_deleted`,
`deleted_at`, `deleted_by_id`) together with everything depending on it.
Restoring brings back the record and the children deleted with it.
Tombstoned records are purged by the reaper after their retention period.

### Actor
Every request must carry an `X-Actor-Token` header identifying the acting
user. Records of other organizations are only visible to platform users.
            """,
        },
        {
            "name": "maintenance",
            "description": "Platform operator endpoints (platform SuperAdmin only).",
        },
    ]

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
# Task Manager Lifecycle API

Multi-tenant soft delete, cascade and restore service for organizations,
departments, users, tasks and their dependent records.

- **Soft delete only**: physical deletes are rejected; the reaper purges expired tombstones
- **Cascades**: children are tombstoned before their parent, in one transaction
- **Restore**: brings back exactly the children deleted with the parent
- **Realtime events**: `entity.deleted` and `entity.restored` are published after commit
        """,
        openapi_tags=tags_metadata,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        lifespan=lifespan,
    )

    # Store container in app state for access if needed
    app.state.container = container

    # Setup exception handlers
    setup_exception_handlers(app)

    # Setup middleware (order matters!)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)
    setup_cors(app, settings)

    # Include routers
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app
