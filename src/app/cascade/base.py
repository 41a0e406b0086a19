"""Cascade orchestrator base class.

An orchestrator soft-deletes (or restores) one entity together with every
entity that references it, children before parent on delete and parent
before children on restore. It is stateless: all state lives in the
transaction context (an active unit of work) supplied by the caller, so a
failure anywhere rolls the whole walk back.

Conventions:
- Public entry points (``*_with_cascade``, ``soft_delete_many_cascade``)
  require an active transaction and run the targeted-delete guards.
- ``_delete_one`` / ``_delete_matching`` / ``_restore_one`` /
  ``_restore_matching`` are used by parent orchestrators and skip the
  targeted guards.
- Every row touched by one cascade gets the same ``deleted_at``; restore
  brings back children tombstoned at or after the parent's ``deleted_at``.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar
from uuid import UUID

from src.domain.constants import CascadeDefaults
from src.domain.exceptions import (
    AlreadyDeletedError,
    NotDeletedError,
    ReferentialIntegrityError,
    TransactionRequiredError,
)
from src.domain.interfaces import DeletedFilter
from src.domain.models import ENTITY_MODELS, BaseEntity, User
from src.domain.models.base import utcnow
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.unit_of_work import IUnitOfWork
from src.infrastructure.repositories import BaseRepository


if TYPE_CHECKING:
    from src.app.cascade.registry import CascadeRegistry


logger = get_logger(__name__)

T = TypeVar("T", bound=BaseEntity)


def require_transaction(tx: IUnitOfWork | None, operation: str) -> IUnitOfWork:
    """Fail fast unless ``tx`` is an active transaction context.

    Raises:
        TransactionRequiredError: If ``tx`` is missing or not active
    """
    if tx is None or not getattr(tx, "is_active", False):
        raise TransactionRequiredError(operation)
    return tx


class CascadeOrchestrator(Generic[T]):
    """Delete/restore cascade for one entity type.

    Subclasses set :attr:`model` and override :meth:`delete_children`,
    :meth:`restore_children`, :meth:`parent_refs` and :meth:`guard_delete`
    as needed. Leaf types set :attr:`bulk_children` so that, when deleted as
    someone's children, they are tombstoned with one bulk statement.
    """

    model: ClassVar[type[Any]]
    bulk_children: ClassVar[bool] = False

    def __init__(self, registry: "CascadeRegistry", batch_size: int = CascadeDefaults.BATCH_SIZE):
        self.registry = registry
        self.batch_size = batch_size

    @property
    def entity_type(self) -> str:
        return str(self.model.entity_type())

    def repository(self, tx: IUnitOfWork) -> BaseRepository[Any]:
        return tx.repository_for(self.model)

    # Hooks

    async def guard_delete(self, entity: T, tx: IUnitOfWork) -> None:
        """Reject a targeted delete (not run when deleted as someone's child)."""

    async def delete_children(
        self, entity: T, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        """Tombstone every child of ``entity``, in dependency order."""

    async def restore_children(
        self,
        entity: T,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        """Restore the children tombstoned at or after ``cutoff``."""

    def parent_refs(self, entity: T) -> list[tuple[str, type[Any], UUID | None]]:
        """References that must be live before ``entity`` can be restored.

        Returns:
            ``(field, model, id)`` triples
        """
        refs: list[tuple[str, type[Any], UUID | None]] = []
        if hasattr(entity, "organization_id"):
            refs.append(("organization", ENTITY_MODELS["Organization"], entity.organization_id))
        if hasattr(entity, "department_id"):
            refs.append(("department", ENTITY_MODELS["Department"], entity.department_id))
        return refs

    # Public entry points

    async def soft_delete_by_id_with_cascade(
        self,
        id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> T:
        """Soft-delete one entity and everything that depends on it.

        Raises:
            TransactionRequiredError: Without an active transaction
            EntityNotFoundError: If no entity has this id
            AlreadyDeletedError: If the entity is already tombstoned
        """
        tx = require_transaction(tx, f"{self.entity_type} cascade delete")
        entity: Any = await self.repository(tx).get_or_raise(id, include_deleted=True)
        if entity.is_deleted:
            raise AlreadyDeletedError(self.entity_type, id)
        await self.guard_delete(entity, tx)

        at = utcnow()
        logger.info("cascade_soft_delete_started", entity_type=self.entity_type, entity_id=str(id))
        await self._delete_one(entity, tx=tx, actor_id=actor_id, at=at)
        logger.info(
            "cascade_soft_delete_completed", entity_type=self.entity_type, entity_id=str(id)
        )
        return entity  # type: ignore[no-any-return]

    async def restore_by_id_with_cascade(
        self,
        id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> T:
        """Restore one entity and the children removed together with it.

        Raises:
            TransactionRequiredError: Without an active transaction
            EntityNotFoundError: If no entity has this id
            NotDeletedError: If the entity is not tombstoned
            ReferentialIntegrityError: If a parent of the entity is tombstoned
        """
        tx = require_transaction(tx, f"{self.entity_type} cascade restore")
        entity: Any = await self.repository(tx).get_or_raise(id, include_deleted=True)
        if not entity.is_deleted:
            raise NotDeletedError(self.entity_type, id)
        dead = await self.dead_parent(entity, tx)
        if dead is not None:
            field, model, ref_id = dead
            raise ReferentialIntegrityError(
                field,
                f"Cannot restore {self.entity_type} {id}: "
                f"{model.entity_type()} {ref_id} is deleted",
                {"parent_type": model.entity_type(), "parent_id": str(ref_id)},
            )

        cutoff = entity.deleted_at
        at = utcnow()
        logger.info("cascade_restore_started", entity_type=self.entity_type, entity_id=str(id))
        await self._restore_one(entity, tx=tx, actor_id=actor_id, at=at, cutoff=cutoff)
        logger.info("cascade_restore_completed", entity_type=self.entity_type, entity_id=str(id))
        return entity  # type: ignore[no-any-return]

    async def soft_delete_many_cascade(
        self,
        *criteria: Any,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
        batch_size: int | None = None,
    ) -> int:
        """Cascade-delete every live entity matching ``criteria``.

        Ids are paged with a keyset cursor; each entity gets the single-entity
        cascade in the same transaction. Entities already tombstoned (also by
        an earlier cascade of the same call) are skipped.

        Returns:
            Number of entities matching ``criteria`` that were tombstoned
        """
        tx = require_transaction(tx, f"{self.entity_type} bulk cascade delete")
        repository = self.repository(tx)
        size = batch_size or self.batch_size
        at = utcnow()
        deleted = 0
        after: UUID | None = None
        while True:
            ids = await repository.find_ids(*criteria, after=after, limit=size)
            if not ids:
                break
            for entity_id in ids:
                entity: Any = await repository.get_by_id(entity_id)
                if entity is None:
                    continue
                await self.guard_delete(entity, tx)
                await self._delete_one(entity, tx=tx, actor_id=actor_id, at=at)
                deleted += 1
            after = ids[-1]
        logger.info(
            "cascade_bulk_soft_delete_completed", entity_type=self.entity_type, count=deleted
        )
        return deleted

    # Walk primitives

    async def dead_parent(
        self, entity: T, tx: IUnitOfWork
    ) -> tuple[str, type[Any], UUID | None] | None:
        """First parent reference of ``entity`` that is not live, if any."""
        for field, model, ref_id in self.parent_refs(entity):
            if ref_id is None:
                continue
            if await tx.repository_for(model).get_by_id(ref_id) is None:
                return field, model, ref_id
        return None

    async def _delete_one(
        self, entity: T, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        await self.delete_children(entity, tx=tx, actor_id=actor_id, at=at)
        entity_any: Any = entity
        entity_any.soft_delete(actor_id=actor_id, at=at)
        await tx.flush()

    async def _delete_matching(
        self, *criteria: Any, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> int:
        repository = self.repository(tx)
        if self.bulk_children:
            return await repository.soft_delete_many(*criteria, actor_id=actor_id, at=at)

        count = 0
        after: UUID | None = None
        while True:
            ids = await repository.find_ids(*criteria, after=after, limit=self.batch_size)
            if not ids:
                return count
            for entity_id in ids:
                entity = await repository.get_by_id(entity_id)
                if entity is None:
                    continue
                await self._delete_one(entity, tx=tx, actor_id=actor_id, at=at)
                count += 1
            after = ids[-1]

    async def _restore_one(
        self,
        entity: T,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        entity_any: Any = entity
        entity_any.restore(actor_id=actor_id, at=at)
        await tx.flush()
        await self.restore_children(entity, tx=tx, actor_id=actor_id, at=at, cutoff=cutoff)

    async def _restore_matching(
        self,
        *criteria: Any,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> int:
        repository = self.repository(tx)
        model: Any = self.model
        criteria = (*criteria, model.deleted_at >= cutoff)
        if self.bulk_children:
            return await repository.restore_many(*criteria, actor_id=actor_id, at=at)

        count = 0
        after: UUID | None = None
        while True:
            ids = await repository.find_ids(
                *criteria, deleted=DeletedFilter.ONLY, after=after, limit=self.batch_size
            )
            if not ids:
                return count
            for entity_id in ids:
                entity: Any = await repository.get_by_id(entity_id, include_deleted=True)
                if entity is None or not entity.is_deleted:
                    continue
                dead = await self.dead_parent(entity, tx)
                if dead is not None:
                    logger.info(
                        "cascade_restore_skipped",
                        entity_type=self.entity_type,
                        entity_id=str(entity_id),
                        dead_parent=dead[0],
                    )
                    continue
                await self._restore_one(entity, tx=tx, actor_id=actor_id, at=at, cutoff=cutoff)
                count += 1
            after = ids[-1]


class ActorOwnedCascade(CascadeOrchestrator[T]):
    """Orchestrator whose entity also requires its acting user to be live on restore."""

    actor_field: ClassVar[str] = "created_by_id"

    def parent_refs(self, entity: T) -> list[tuple[str, type[Any], UUID | None]]:
        refs = super().parent_refs(entity)
        refs.append((self.actor_field.removesuffix("_id"), User, getattr(entity, self.actor_field)))
        return refs
