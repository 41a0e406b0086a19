"""Unit of Work pattern for transaction management.

The Unit of Work is the transaction context of the lifecycle subsystem:
one session, one database transaction and every repository bound to that
session. Cascades only run against an *active* unit of work.

Key benefits:
- Single transaction boundary for a whole cascade
- Automatic commit/rollback handling
- Explicit transaction lifecycle
- Prevents partial cascades from failures
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.models import SoftDeleteMixin
from src.infrastructure.repositories import (
    AttachmentRepository,
    BaseRepository,
    DepartmentRepository,
    MaterialRepository,
    NotificationRepository,
    OrganizationRepository,
    TaskActivityRepository,
    TaskCommentRepository,
    TaskRepository,
    UserRepository,
    VendorRepository,
)


class IUnitOfWork(Protocol):
    """Unit of Work interface.

    All repositories are accessed through the UoW to ensure they share
    the same database session and transaction.
    """

    organizations: OrganizationRepository
    departments: DepartmentRepository
    users: UserRepository
    tasks: TaskRepository
    activities: TaskActivityRepository
    comments: TaskCommentRepository
    materials: MaterialRepository
    vendors: VendorRepository
    attachments: AttachmentRepository
    notifications: NotificationRepository

    @property
    def is_active(self) -> bool:
        """Whether a transaction is open on this unit of work."""
        ...

    def repository_for(self, model: type[SoftDeleteMixin]) -> "BaseRepository[Any]":
        """Repository handling ``model`` (task variants share the task repository)."""
        ...

    async def flush(self) -> None:
        """Push pending changes to the database without committing."""
        ...

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit the context manager."""
        ...


class UnitOfWork:
    """SQLAlchemy implementation of Unit of Work pattern.

    Manages database transactions and provides repository instances that share
    the same session. Automatically commits on success or rolls back on error.

    Example:
        ```python
        async with UnitOfWork(session_factory) as uow:
            await registry.get("Department").soft_delete_by_id_with_cascade(
                department_id, tx=uow, actor_id=actor_id
            )
            # Commit is automatic on successful exit
            # Rollback is automatic if exception occurs
        ```
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize Unit of Work.

        Args:
            session_factory: Factory for creating database sessions
        """
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    async def __aenter__(self) -> "UnitOfWork":
        """Enter context: create session and initialize repositories.

        Returns:
            Self with initialized repositories
        """
        if self._session is not None:
            raise RuntimeError("Unit of work is already active")

        self._session = self._session_factory()

        # Every repository shares the same session and transaction
        self.organizations = OrganizationRepository(self._session)
        self.departments = DepartmentRepository(self._session)
        self.users = UserRepository(self._session)
        self.tasks = TaskRepository(self._session)
        self.activities = TaskActivityRepository(self._session)
        self.comments = TaskCommentRepository(self._session)
        self.materials = MaterialRepository(self._session)
        self.vendors = VendorRepository(self._session)
        self.attachments = AttachmentRepository(self._session)
        self.notifications = NotificationRepository(self._session)

        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit context: commit or rollback based on exceptions.

        Args:
            exc_type: Exception type if an error occurred
            exc_val: Exception value if an error occurred
            exc_tb: Exception traceback if an error occurred
        """
        if self._session is None:
            return

        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self._session.close()
            self._session = None

    def repository_for(self, model: type[SoftDeleteMixin]) -> "BaseRepository[Any]":
        """Repository handling ``model`` (task variants share the task repository)."""
        for repository in (
            self.organizations,
            self.departments,
            self.users,
            self.tasks,
            self.activities,
            self.comments,
            self.materials,
            self.vendors,
            self.attachments,
            self.notifications,
        ):
            if issubclass(model, repository.model):
                return repository
        raise LookupError(f"No repository for {model.__name__}")

    async def flush(self) -> None:
        await self.session.flush()

    async def commit(self) -> None:
        """Commit all changes in the current transaction.

        Raises:
            RuntimeError: If called outside of context manager
        """
        if self._session is None:
            raise RuntimeError("Cannot commit: session not initialized")
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback all changes in the current transaction.

        Raises:
            RuntimeError: If called outside of context manager
        """
        if self._session is None:
            raise RuntimeError("Cannot rollback: session not initialized")
        await self._session.rollback()


@asynccontextmanager
async def get_unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[UnitOfWork, None]:
    """Get Unit of Work instance as context manager.

    Args:
        session_factory: Database session factory

    Yields:
        Unit of Work instance
    """
    async with UnitOfWork(session_factory) as uow:
        yield uow
