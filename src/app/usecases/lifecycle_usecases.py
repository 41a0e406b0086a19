"""Lifecycle use cases: read, list, soft delete, restore and restore audit.

Every use case works on one entity type, named by its type tag
(``Organization``, ``BaseTask``, ``Vendor``...). Writes run one cascade
inside one unit of work; events go out only after the commit.
"""

from collections.abc import Callable
from typing import Any
from uuid import UUID

from src.app.authorization import DELETE, READ, RESTORE
from src.app.cascade import CascadeRegistry
from src.domain.actor_claims import ActorTokenClaims
from src.domain.constants import TASK_MODELS
from src.domain.exceptions import AuthorizationError, EntityNotFoundError, ValidationError
from src.domain.interfaces import AuthorizationScope, DeletedFilter, IAuthorizer
from src.domain.models import Department, Organization, User
from src.domain.models.base import utcnow
from src.external.interfaces import IEventEmitter
from src.external.realtime import rooms_for
from src.infrastructure.constants import PaginationDefaults
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.unit_of_work import UnitOfWork


logger = get_logger(__name__)

ENTITY_DELETED = "entity.deleted"
ENTITY_RESTORED = "entity.restored"

_OWNER_FIELDS = ("created_by_id", "added_by_id", "uploaded_by_id")


def scope_of(entity: Any) -> AuthorizationScope:
    """Ownership coordinates of a loaded entity."""
    if isinstance(entity, Organization):
        return AuthorizationScope(organization_id=entity.id)
    if isinstance(entity, Department):
        return AuthorizationScope(
            organization_id=entity.organization_id, department_id=entity.id
        )
    if isinstance(entity, User):
        return AuthorizationScope(
            organization_id=entity.organization_id,
            department_id=entity.department_id,
            owner_id=entity.id,
        )
    owner = next(
        (getattr(entity, f) for f in _OWNER_FIELDS if getattr(entity, f, None) is not None), None
    )
    return AuthorizationScope(
        organization_id=entity.organization_id,
        department_id=getattr(entity, "department_id", None),
        owner_id=owner,
    )


def authorization_tag(entity_type: str) -> str:
    """Task variants share the task permissions."""
    return "BaseTask" if entity_type in TASK_MODELS else entity_type


class _LifecycleUseCase:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        cascades: CascadeRegistry,
        authorizer: IAuthorizer,
        event_emitter: IEventEmitter | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._cascades = cascades
        self._authorizer = authorizer
        self._events = event_emitter

    def _model(self, entity_type: str) -> Any:
        try:
            return self._cascades.get(entity_type).model
        except LookupError:
            raise ValidationError(
                f"Unknown entity type {entity_type}", {"entity_type": entity_type}
            ) from None

    def _authorize(self, actor: ActorTokenClaims, operation: str, entity: Any) -> None:
        """Hide records of other tenants, then consult the authorizer.

        Raises:
            EntityNotFoundError: If the record belongs to another organization
                and the actor is not a platform user
            AuthorizationError: If the actor's role does not allow ``operation``
        """
        scope = scope_of(entity)
        entity_type = entity.entity_type()
        if scope.organization_id != actor.organization_id and not actor.is_platform_user:
            raise EntityNotFoundError(
                f"{entity_type} with ID {entity.id} not found",
                {"entity_type": entity_type, "id": str(entity.id)},
            )
        tag = authorization_tag(entity_type)
        if not self._authorizer.can_perform(actor, tag, operation, scope):
            raise AuthorizationError(
                f"Not allowed to {operation} this {entity_type}",
                {"entity_type": entity_type, "id": str(entity.id), "operation": operation},
            )

    async def _emit(self, event: str, entity: Any, actor: ActorTokenClaims) -> None:
        if self._events is None:
            return
        scope = scope_of(entity)
        payload = {
            "entity_type": entity.entity_type(),
            "entity_id": entity.id,
            "organization_id": scope.organization_id,
            "department_id": scope.department_id,
            "actor_id": actor.user_id,
            "at": utcnow(),
        }
        await self._events.emit(
            rooms_for(scope.organization_id, scope.department_id), event, payload
        )


class GetEntityUseCase(_LifecycleUseCase):
    """Use case for getting one record by ID."""

    async def execute(
        self,
        entity_type: str,
        entity_id: UUID,
        actor: ActorTokenClaims,
        include_deleted: bool = False,
    ) -> Any:
        """Execute the use case.

        Raises:
            EntityNotFoundError: If the record is missing, tombstoned (unless
                ``include_deleted``) or in another tenant
            AuthorizationError: If the actor may not read it
        """
        model = self._model(entity_type)
        async with self._uow_factory() as uow:
            repository = uow.repository_for(model)
            entity = await repository.get_or_raise(entity_id, include_deleted=include_deleted)
            self._authorize(actor, READ, entity)
            return entity


class ListEntitiesUseCase(_LifecycleUseCase):
    """Use case for listing records of the actor's organization."""

    async def execute(
        self,
        entity_type: str,
        actor: ActorTokenClaims,
        skip: int = 0,
        limit: int = PaginationDefaults.DEFAULT_PAGE_SIZE,
        deleted: DeletedFilter = DeletedFilter.EXCLUDE,
        organization_id: UUID | None = None,
    ) -> tuple[list[Any], int]:
        """Execute the use case.

        Args:
            entity_type: Type tag of the records
            actor: Acting user
            skip: Number of records to skip
            limit: Maximum number of records to return
            deleted: Visibility of tombstoned records
            organization_id: Tenant to list (platform users only; defaults to
                the actor's organization)

        Returns:
            The page of records and the total matching count

        Raises:
            ValidationError: If paging parameters are invalid
            AuthorizationError: If the actor may not read this type
        """
        if skip < 0:
            raise ValidationError("Skip must be non-negative")
        if limit < 1 or limit > PaginationDefaults.MAX_PAGE_SIZE:
            raise ValidationError(
                f"Limit must be between 1 and {PaginationDefaults.MAX_PAGE_SIZE}"
            )

        model = self._model(entity_type)
        tenant = organization_id or actor.organization_id
        if tenant != actor.organization_id and not actor.is_platform_user:
            raise AuthorizationError("Cannot list records of another organization")
        scope = AuthorizationScope(organization_id=tenant, department_id=actor.department_id)
        if not self._authorizer.can_perform(actor, authorization_tag(entity_type), READ, scope):
            raise AuthorizationError(f"Not allowed to list {entity_type} records")

        async with self._uow_factory() as uow:
            repository = uow.repository_for(model)
            items = await repository.get_all(
                skip=skip, limit=limit, organization_id=tenant, deleted=deleted
            )
            total = await repository.count(organization_id=tenant, deleted=deleted)
            return items, total


class SoftDeleteEntityUseCase(_LifecycleUseCase):
    """Use case for soft deleting one record and everything depending on it."""

    async def execute(
        self,
        entity_type: str,
        entity_id: UUID,
        actor: ActorTokenClaims,
        reassign_to: UUID | None = None,
    ) -> Any:
        """Execute the use case.

        Args:
            entity_type: Type tag of the record
            entity_id: Record to delete
            actor: Acting user
            reassign_to: Replacement vendor (vendors only)

        Returns:
            The tombstoned record

        Raises:
            EntityNotFoundError: If the record is missing or in another tenant
            AuthorizationError: If the actor may not delete it
            AlreadyDeletedError: If the record is already tombstoned
            ProtectedEntityError: For the platform organization
            BusinessRuleViolationError: For guarded deletes
            ReferentialIntegrityError: For an invalid vendor replacement
        """
        model = self._model(entity_type)
        cascade = self._cascades.get(entity_type)
        options: dict[str, Any] = {}
        if reassign_to is not None:
            if model.entity_type() != "Vendor":
                raise ValidationError("reassign_to is only accepted when deleting a vendor")
            options["reassign_to"] = reassign_to

        async with self._uow_factory() as uow:
            entity = await uow.repository_for(model).get_or_raise(entity_id, include_deleted=True)
            self._authorize(actor, DELETE, entity)
            entity = await cascade.soft_delete_by_id_with_cascade(
                entity_id, tx=uow, actor_id=actor.user_id, **options
            )

        logger.info(
            "entity_soft_deleted",
            entity_type=entity.entity_type(),
            entity_id=str(entity_id),
            actor_id=str(actor.user_id),
        )
        await self._emit(ENTITY_DELETED, entity, actor)
        return entity


class RestoreEntityUseCase(_LifecycleUseCase):
    """Use case for restoring one record and the children deleted with it."""

    async def execute(self, entity_type: str, entity_id: UUID, actor: ActorTokenClaims) -> Any:
        """Execute the use case.

        Returns:
            The restored record

        Raises:
            EntityNotFoundError: If the record is missing or in another tenant
            AuthorizationError: If the actor may not restore it
            NotDeletedError: If the record is not tombstoned
            ReferentialIntegrityError: If a parent of the record is tombstoned
        """
        model = self._model(entity_type)
        cascade = self._cascades.get(entity_type)
        async with self._uow_factory() as uow:
            entity = await uow.repository_for(model).get_or_raise(entity_id, include_deleted=True)
            self._authorize(actor, RESTORE, entity)
            entity = await cascade.restore_by_id_with_cascade(
                entity_id, tx=uow, actor_id=actor.user_id
            )

        logger.info(
            "entity_restored",
            entity_type=entity.entity_type(),
            entity_id=str(entity_id),
            actor_id=str(actor.user_id),
        )
        await self._emit(ENTITY_RESTORED, entity, actor)
        return entity


class GetRestoreAuditUseCase(_LifecycleUseCase):
    """Use case for reading the tombstone fields of one record."""

    async def execute(
        self, entity_type: str, entity_id: UUID, actor: ActorTokenClaims
    ) -> dict[str, Any]:
        model = self._model(entity_type)
        async with self._uow_factory() as uow:
            repository = uow.repository_for(model)
            entity = await repository.get_or_raise(entity_id, include_deleted=True)
            self._authorize(actor, READ, entity)
            audit = await repository.get_restore_audit(entity_id)
            audit["entity_type"] = entity.entity_type()
            return audit
