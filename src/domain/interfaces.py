"""Repository and authorization interfaces defining domain contracts.

This module defines abstract interfaces for repositories and the
authorization port, establishing the contract between the domain and
infrastructure layers. Every repository is tombstone-aware: reads hide
soft-deleted rows unless asked otherwise and physical deletion is not part
of the contract.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar
from uuid import UUID


T = TypeVar("T")


class DeletedFilter(StrEnum):
    """Visibility of tombstoned rows in list and count queries."""

    EXCLUDE = "exclude"
    INCLUDE = "include"
    ONLY = "only"


class IRepository(ABC, Generic[T]):
    """Base repository interface for tombstone-aware entity persistence.

    Type Parameters:
        T: Entity type managed by this repository
    """

    @abstractmethod
    async def get_by_id(self, id: UUID, include_deleted: bool = False) -> T | None:
        """Retrieve entity by its unique identifier.

        Args:
            id: Entity's unique identifier (UUID)
            include_deleted: Whether to include soft-deleted entities in search

        Returns:
            Entity instance if found, None otherwise
        """

    @abstractmethod
    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        organization_id: UUID | None = None,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
    ) -> list[T]:
        """Retrieve entities with pagination and optional tenant scoping.

        Args:
            skip: Number of records to skip (offset for pagination)
            limit: Maximum number of records to return
            organization_id: Optional tenant scope
            deleted: Visibility of tombstoned rows

        Returns:
            List of entity instances matching criteria
        """

    @abstractmethod
    async def create(self, entity: T) -> T:
        """Validate references and persist a new entity."""

    @abstractmethod
    async def update(self, entity: T, validate: bool = True) -> T:
        """Validate changed references and persist changes to an existing entity."""

    @abstractmethod
    async def soft_delete_by_id(
        self,
        id: UUID,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> T:
        """Tombstone one live entity.

        Raises:
            EntityNotFoundError: If no entity has this id
            AlreadyDeletedError: If the entity is already tombstoned
        """

    @abstractmethod
    async def restore_by_id(
        self,
        id: UUID,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> T:
        """Restore one tombstoned entity.

        Raises:
            EntityNotFoundError: If no entity has this id
            NotDeletedError: If the entity is not tombstoned
        """

    @abstractmethod
    async def soft_delete_many(
        self,
        *criteria: Any,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> int:
        """Tombstone every live entity matching ``criteria``.

        Returns:
            Number of entities tombstoned (already tombstoned rows are skipped)
        """

    @abstractmethod
    async def restore_many(
        self,
        *criteria: Any,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> int:
        """Restore every tombstoned entity matching ``criteria``.

        Returns:
            Number of entities restored (live rows are skipped)
        """

    @abstractmethod
    async def force_delete(self, id: UUID) -> bool:
        """Physical deletion is never allowed for soft-deletable entities.

        Raises:
            HardDeleteBlockedError: Always
        """

    @abstractmethod
    async def get_deleted(
        self,
        skip: int = 0,
        limit: int = 100,
        organization_id: UUID | None = None,
    ) -> list[T]:
        """Retrieve only soft-deleted entities with pagination."""

    @abstractmethod
    async def count(
        self,
        organization_id: UUID | None = None,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
    ) -> int:
        """Count entities with the same visibility rules as :meth:`get_all`."""

    @abstractmethod
    async def find_deleted_by_ids(self, ids: Sequence[UUID]) -> list[T]:
        """Retrieve the tombstoned entities among ``ids``."""

    @abstractmethod
    async def get_restore_audit(self, id: UUID) -> dict[str, Any]:
        """Return the tombstone fields of one entity, live or not.

        Raises:
            EntityNotFoundError: If no entity has this id
        """


@dataclass(frozen=True)
class AuthorizationScope:
    """Ownership coordinates of the record an operation targets.

    Attributes:
        organization_id: Tenant owning the record
        department_id: Department owning the record, when it has one
        owner_id: User owning the record (creator, uploader or the user itself)
    """

    organization_id: UUID
    department_id: UUID | None = None
    owner_id: UUID | None = None


class IAuthorizer(ABC):
    """Authorization port consulted before every lifecycle operation."""

    @abstractmethod
    def can_perform(
        self,
        actor: Any,
        resource_type: str,
        operation: str,
        scope: AuthorizationScope,
    ) -> bool:
        """Decide whether ``actor`` may run ``operation`` on a record.

        Args:
            actor: Authenticated actor claims
            resource_type: Entity type tag of the target record
            operation: Operation name (read, delete, restore)
            scope: Ownership coordinates of the target record

        Returns:
            True when the operation is allowed
        """
