"""Database connection and session management.

This module provides async SQLAlchemy database connectivity with connection
pooling, session lifecycle management, schema bootstrap and health check
capabilities. Every session it hands out is backed by
:class:`TombstoneSession`, so tombstone filtering, hard-delete blocking and
the tombstone write guard apply to all ORM access.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.models import Base
from src.infrastructure.config import Settings
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.tombstone import TombstoneSession


logger = get_logger(__name__)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the project session factory for ``engine``.

    Configures sessions with:
    - sync_session_class=TombstoneSession: tombstone listeners on every session
    - expire_on_commit=False: Allows access to objects after commit
    - autoflush=False: Requires explicit flush for database writes
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        sync_session_class=TombstoneSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables and indexes (tombstone indexes included)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class Database:
    """Database connection manager with async SQLAlchemy support.

    Handles database engine creation, connection pooling, session factory
    management, and provides transactional session context managers.

    Connection Pool Configuration:
        - pool_size: Base number of persistent connections
        - max_overflow: Additional connections during traffic spikes
        - pool_pre_ping: Validates connections before use (prevents stale connections)

    SQLite URLs (used for local runs and tests) get a single shared
    connection instead of a pool.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize database manager with application settings.

        Args:
            settings: Application configuration containing database connection details
        """
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    def _engine_options(self) -> dict[str, Any]:
        url = make_url(self.settings.database_url)
        if url.get_backend_name() == "sqlite":
            return {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        return {
            "pool_size": self.settings.database_pool_size,
            "max_overflow": self.settings.database_max_overflow,
            "pool_pre_ping": True,
        }

    def get_engine(self) -> AsyncEngine:
        """Get or create the database engine (singleton pattern).

        Returns:
            Async SQLAlchemy engine instance
        """
        if self._engine is None:
            self._engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.database_echo,
                **self._engine_options(),
            )
        return self._engine

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory (singleton pattern).

        Returns:
            Session factory for creating tombstone-aware database sessions
        """
        if self._session_factory is None:
            self._session_factory = make_session_factory(self.get_engine())
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional database session with automatic commit/rollback.

        Yields:
            Active database session

        Raises:
            Exception: Re-raises any exception after rolling back transaction
        """
        session_factory = self.get_session_factory()
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create missing tables and tombstone indexes."""
        await create_schema(self.get_engine())
        logger.info("database_schema_ensured")

    async def close(self) -> None:
        """Close all database connections and dispose of the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def health_check(self) -> bool:
        """Verify database connectivity with a simple query.

        Returns:
            True if database is accessible, False on any error
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("database_health_check_failed", error=str(e))
            return False
