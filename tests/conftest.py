"""Global test configuration and fixtures.

Fixture Scoping Strategy:
- session: test settings (immutable)
- function: database, unit of work factory, seeded tenants, app and clients
  (every test gets a fresh in-memory SQLite database)

The database is SQLite in memory behind a single shared connection, built
through the same ``Database`` class and session factory the application
uses, so tombstone filtering, hard-delete blocking and the write guard are
all active in tests.
"""

from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.cascade import CascadeRegistry, build_cascade_registry
from src.domain.constants import UserRole
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.persistence.database import Database
from src.infrastructure.persistence.unit_of_work import UnitOfWork
from src.presentation.api import create_app
from tests.factories import (
    Tenant,
    TenantBuilder,
    UowFactory,
    department_factory,
    organization_factory,
    persist,
    user_factory,
)


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# ============================================================================
# Session-Scoped Fixtures (Immutable Resources)
# ============================================================================


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings (session-scoped for performance).

    Returns:
        Settings instance configured for testing
    """
    return Settings(
        app_env="testing",
        app_name="taskmanager-lifecycle-test",
        debug=True,
        log_level="DEBUG",
        database_url=TEST_DATABASE_URL,
        database_echo=False,
        realtime_enabled=False,
        reaper_enabled=True,
        cascade_batch_size=2,
    )


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database]:
    """Fresh in-memory database with the full schema.

    Yields:
        Database: Database manager with tables and tombstone indexes created
    """
    db = Database(test_settings)
    await db.create_schema()
    yield db
    await db.close()


@pytest.fixture
def uow_factory(database: Database) -> UowFactory:
    """Factory building a new unit of work on the test database."""
    session_factory = database.get_session_factory()
    return lambda: UnitOfWork(session_factory)


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """Plain tombstone-aware session, rolled back at the end of the test."""
    async with database.get_session_factory()() as session:
        yield session
        await session.rollback()


@pytest.fixture
def registry() -> CascadeRegistry:
    """Cascade registry with a small batch size so keyset paging is exercised."""
    return build_cascade_registry(batch_size=2)


# ============================================================================
# Seeded Data
# ============================================================================


@pytest.fixture
def tenant_builder(uow_factory: UowFactory) -> TenantBuilder:
    """Build additional tenants (platform or regular) on demand."""

    async def build(name: str = "Acme", is_platform_org: bool = False) -> Tenant:
        organization = organization_factory(name=name, is_platform_org=is_platform_org)
        await persist(uow_factory, organization)
        department = department_factory(organization.id)
        await persist(uow_factory, department)
        super_admin = user_factory(
            organization.id,
            department.id,
            role=UserRole.SUPER_ADMIN,
            is_platform_user=is_platform_org,
        )
        admin = user_factory(
            organization.id, department.id, role=UserRole.ADMIN, is_platform_user=is_platform_org
        )
        member = user_factory(
            organization.id, department.id, role=UserRole.USER, is_platform_user=is_platform_org
        )
        await persist(uow_factory, super_admin, admin, member)
        return Tenant(organization, department, super_admin, admin, member)

    return build


@pytest.fixture
async def tenant(tenant_builder: TenantBuilder) -> Tenant:
    """Default seeded tenant."""
    return await tenant_builder()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def event_emitter() -> AsyncMock:
    """Recording event emitter (no Redis)."""
    emitter = AsyncMock()
    emitter.emit = AsyncMock(return_value=True)
    emitter.close = AsyncMock()
    return emitter


@pytest.fixture
def app(
    monkeypatch: pytest.MonkeyPatch,
    database: Database,
    event_emitter: AsyncMock,
) -> Generator[Any]:
    """FastAPI application bound to the test database.

    Settings come from the environment so that tokens minted with
    ``get_settings()`` in tests verify against the same ephemeral key.
    """
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", TEST_DATABASE_URL)
    monkeypatch.setenv("REALTIME_ENABLED", "false")
    monkeypatch.setenv("CASCADE_BATCH_SIZE", "2")
    get_settings.cache_clear()

    application = create_app()
    container = application.state.container
    container.database.override(providers.Object(database))
    container.event_emitter.override(providers.Object(event_emitter))

    yield application

    container.unwire()
    get_settings.cache_clear()


@pytest.fixture
async def async_client(app: Any) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client (the lifespan does not run; the database fixture owns the schema)."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def mock_session_factory() -> MagicMock:
    """Session factory returning a mocked session (unit tests)."""
    session = AsyncMock(spec=AsyncSession)
    return MagicMock(return_value=session)


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests with mocked dependencies")
