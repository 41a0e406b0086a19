"""Base repository implementation for tombstone-aware entity operations.

This module provides a generic repository base class implementing the
soft-delete and restore primitives, the supporting tombstone queries and
validated create/update, eliminating boilerplate code across
entity-specific repositories.

All reads run through the tombstone-aware session: live rows only unless a
``deleted`` visibility is requested. Reads use ``populate_existing`` so
objects already in the identity map reflect bulk primitive updates made
earlier in the same transaction.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, Text, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.exceptions import EntityNotFoundError, HardDeleteBlockedError
from src.domain.interfaces import DeletedFilter, IRepository
from src.domain.models.base import TOMBSTONE_TRANSITION, BaseEntity, utcnow
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.tombstone import INCLUDE_DELETED, ONLY_DELETED
from src.infrastructure.validation.validators import EntityValidator, validator_for


logger = get_logger(__name__)

T = TypeVar("T", bound=BaseEntity)


def with_visibility(query: Select[Any], deleted: DeletedFilter) -> Select[Any]:
    """Apply a tombstone visibility to a select statement."""
    if deleted == DeletedFilter.INCLUDE:
        return query.execution_options(**{INCLUDE_DELETED: True})
    if deleted == DeletedFilter.ONLY:
        return query.execution_options(**{ONLY_DELETED: True})
    return query


def json_mentions(column: Any, value: UUID) -> ColumnElement[bool]:
    """Match rows whose JSON ``column`` holds ``value`` as a string at any depth."""
    return cast(column, Text).contains(f'"{value}"')


class BaseRepository(IRepository[T], Generic[T]):
    """Generic repository providing tombstone-aware persistence.

    Type Parameters:
        T: Soft-deletable entity type extending BaseEntity

    Attributes:
        _session: SQLAlchemy async session for database operations
        _model: Entity model class for type-safe queries
        _validator: Pre-write referential validator for the model
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[T],
        validator: EntityValidator[Any] | None = None,
    ) -> None:
        """Initialize repository with session and model type.

        Args:
            session: Active async database session
            model: SQLAlchemy model class for entity type
            validator: Referential validator (defaults to the model's registered one)
        """
        self._session = session
        self._model = model
        self._validator = validator or validator_for(model, session)

    @property
    def model(self) -> type[T]:
        return self._model

    @property
    def entity_type(self) -> str:
        return self._model.entity_type()

    def _select(
        self, *criteria: Any, deleted: DeletedFilter = DeletedFilter.EXCLUDE
    ) -> Select[Any]:
        query = select(self._model).where(*criteria)
        return with_visibility(query, deleted).execution_options(populate_existing=True)

    def _scoped(self, organization_id: UUID | None) -> list[Any]:
        if organization_id is None:
            return []
        model_cls: Any = self._model
        if hasattr(model_cls, "organization_id"):
            return [model_cls.organization_id == organization_id]
        return [model_cls.id == organization_id]

    async def get_by_id(self, id: UUID, include_deleted: bool = False) -> T | None:
        """Retrieve entity by unique identifier.

        Args:
            id: Entity's unique identifier (UUID)
            include_deleted: Whether to include soft-deleted entities

        Returns:
            Entity instance if found, None otherwise
        """
        deleted = DeletedFilter.INCLUDE if include_deleted else DeletedFilter.EXCLUDE
        result = await self._session.execute(self._select(self._model.id == id, deleted=deleted))
        return result.scalar_one_or_none()

    async def get_or_raise(self, id: UUID, include_deleted: bool = False) -> T:
        entity = await self.get_by_id(id, include_deleted=include_deleted)
        if entity is None:
            raise EntityNotFoundError(
                f"{self.entity_type} with ID {id} not found",
                {"entity_type": self.entity_type, "id": str(id)},
            )
        return entity

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        organization_id: UUID | None = None,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
    ) -> list[T]:
        """Retrieve entities with pagination, tenant scoping and tombstone visibility.

        Args:
            skip: Number of records to skip (offset)
            limit: Maximum records to return
            organization_id: Optional tenant scope
            deleted: Visibility of tombstoned rows

        Returns:
            List of entity instances ordered by id
        """
        query = (
            self._select(*self._scoped(organization_id), deleted=deleted)
            .order_by(self._model.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def find(self, *criteria: Any, deleted: DeletedFilter = DeletedFilter.EXCLUDE) -> list[T]:
        """Retrieve every entity matching ``criteria``."""
        result = await self._session.execute(self._select(*criteria, deleted=deleted))
        return list(result.scalars().all())

    async def find_ids(
        self,
        *criteria: Any,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
        after: UUID | None = None,
        limit: int | None = None,
    ) -> list[UUID]:
        """Retrieve matching ids in id order, one keyset page at a time.

        Args:
            criteria: SQL filter expressions
            deleted: Visibility of tombstoned rows
            after: Return only ids greater than this one (keyset cursor)
            limit: Page size (None for all)
        """
        query = select(self._model.id).where(*criteria).order_by(self._model.id)
        if after is not None:
            query = query.where(self._model.id > after)
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(with_visibility(query, deleted))
        return list(result.scalars().all())

    async def find_page(
        self, *criteria: Any, after: UUID | None = None, limit: int | None = None
    ) -> list[T]:
        """Live entities matching ``criteria`` in id order, one keyset page at a time."""
        model_cls: Any = self._model
        query = self._select(*criteria).order_by(model_cls.id)
        if after is not None:
            query = query.where(model_cls.id > after)
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def create(self, entity: T) -> T:
        """Validate references and create a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity with generated UUID

        Raises:
            ReferentialIntegrityError: If a reference is invalid
        """
        await self._validator.validate(entity)
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity

    async def update(self, entity: T, validate: bool = True) -> T:
        """Validate changed references and persist an existing entity.

        Args:
            entity: Entity with updated values
            validate: Run the referential validator (cascades pass False for
                system-driven edits such as unlinking a deleted material)

        Returns:
            Updated entity
        """
        if validate:
            await self._validator.validate(entity)
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity

    async def soft_delete_by_id(
        self,
        id: UUID,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> T:
        """Tombstone one entity.

        Raises:
            EntityNotFoundError: If no entity has this id
            AlreadyDeletedError: If the entity is already tombstoned
        """
        entity: Any = await self.get_or_raise(id, include_deleted=True)
        entity.soft_delete(actor_id=actor_id, at=at)
        await self._session.flush()
        logger.debug("entity_soft_deleted", entity_type=self.entity_type, entity_id=str(id))
        return entity  # type: ignore[no-any-return]

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
        entity: Any = await self.get_or_raise(id, include_deleted=True)
        entity.restore(actor_id=actor_id, at=at)
        await self._session.flush()
        logger.debug("entity_restored", entity_type=self.entity_type, entity_id=str(id))
        return entity  # type: ignore[no-any-return]

    async def soft_delete_many(
        self,
        *criteria: Any,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> int:
        """Tombstone every live entity matching ``criteria``.

        Tombstoned rows never match, so re-running is a no-op.

        Returns:
            Number of entities tombstoned
        """
        model_cls: Any = self._model
        await self._session.flush()
        statement = (
            update(model_cls)
            .where(*criteria, model_cls.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=at or utcnow(), deleted_by_id=actor_id)
            .execution_options(synchronize_session=False, **{TOMBSTONE_TRANSITION: True})
        )
        result = await self._session.execute(statement)
        count = int(result.rowcount)  # type: ignore[attr-defined]
        if count:
            logger.debug("entities_soft_deleted", entity_type=self.entity_type, count=count)
        return count

    async def restore_many(
        self,
        *criteria: Any,
        actor_id: UUID | None = None,
        at: datetime | None = None,
    ) -> int:
        """Restore every tombstoned entity matching ``criteria``.

        Live rows never match, so re-running is a no-op.

        Returns:
            Number of entities restored
        """
        model_cls: Any = self._model
        await self._session.flush()
        statement = (
            update(model_cls)
            .where(*criteria, model_cls.is_deleted.is_(True))
            .values(
                is_deleted=False,
                deleted_at=None,
                deleted_by_id=None,
                restored_at=at or utcnow(),
                restored_by_id=actor_id,
                restore_count=model_cls.restore_count + 1,
            )
            .execution_options(synchronize_session=False, **{TOMBSTONE_TRANSITION: True})
        )
        result = await self._session.execute(statement)
        count = int(result.rowcount)  # type: ignore[attr-defined]
        if count:
            logger.debug("entities_restored", entity_type=self.entity_type, count=count)
        return count

    async def force_delete(self, id: UUID) -> bool:
        """Physical deletion is not available for soft-deletable entities.

        Raises:
            HardDeleteBlockedError: Always
        """
        raise HardDeleteBlockedError(self.entity_type, {"id": str(id)})

    async def get_deleted(
        self,
        skip: int = 0,
        limit: int = 100,
        organization_id: UUID | None = None,
    ) -> list[T]:
        """Get only soft-deleted entities."""
        return await self.get_all(skip, limit, organization_id, deleted=DeletedFilter.ONLY)

    async def count(
        self,
        organization_id: UUID | None = None,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
    ) -> int:
        """Count entities with the same visibility rules as :meth:`get_all`."""
        query = select(func.count(self._model.id)).where(*self._scoped(organization_id))
        result = await self._session.execute(with_visibility(query, deleted))
        return int(result.scalar_one())

    async def find_deleted_by_ids(self, ids: Sequence[UUID]) -> list[T]:
        """Retrieve the tombstoned entities among ``ids``."""
        if not ids:
            return []
        return await self.find(self._model.id.in_(list(ids)), deleted=DeletedFilter.ONLY)

    async def get_restore_audit(self, id: UUID) -> dict[str, Any]:
        """Return the tombstone fields of one entity, live or not.

        Raises:
            EntityNotFoundError: If no entity has this id
        """
        entity: Any = await self.get_or_raise(id, include_deleted=True)
        return {"id": entity.id, "entity_type": self.entity_type, **entity.tombstone_state}
