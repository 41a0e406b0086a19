"""Pre-write referential validators.

Repositories call :meth:`EntityValidator.validate` from ``create`` and
``update``. New entities get every check; persisted entities only get the
checks covering fields whose attribute history changed. Any violation raises
:class:`ReferentialIntegrityError` and nothing is written.

Example:
    ```python
    validator = validator_for(TaskComment, session)
    await validator.validate(comment)
    ```
"""

from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.constants import (
    ACTIVITY_PARENT_MODELS,
    ATTACHMENT_PARENT_MODELS,
    COMMENT_PARENT_MODELS,
    NOTIFICATION_ENTITY_MODELS,
    ReferenceLimits,
)
from src.domain.exceptions import ReferentialIntegrityError
from src.domain.models import (
    AssignedTask,
    Attachment,
    BaseTask,
    Department,
    Material,
    Notification,
    Organization,
    ProjectTask,
    RoutineTask,
    TaskActivity,
    TaskComment,
    User,
    Vendor,
)
from src.infrastructure.validation.references import ReferenceChecker


T = TypeVar("T")

Changed = frozenset[str] | None


def changed_fields(entity: Any) -> Changed:
    """Attributes changed since load, or None for entities not yet persisted."""
    state = inspect(entity)
    if state.transient or state.pending:
        return None
    return frozenset(attr.key for attr in state.attrs if attr.history.has_changes())


def touched(changed: Changed, *fields: str) -> bool:
    return changed is None or any(field in changed for field in fields)


class EntityValidator(Generic[T]):
    """Base validator bound to one session.

    Subclasses implement :meth:`check`; the base class computes the changed
    field set once per call.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.refs = ReferenceChecker(session)

    async def validate(self, entity: T) -> None:
        await self.check(entity, changed_fields(entity))

    async def check(self, entity: T, changed: Changed) -> None:
        """Run the checks for ``entity``."""

    async def _tenant(self, entity: Any, changed: Changed) -> None:
        if touched(changed, "organization_id", "department_id"):
            await self.refs.tenant(entity.organization_id, getattr(entity, "department_id", None))


class OrganizationValidator(EntityValidator[Organization]):
    pass


class DepartmentValidator(EntityValidator[Department]):
    async def check(self, entity: Department, changed: Changed) -> None:
        await self._tenant(entity, changed)
        if touched(changed, "created_by_id", "organization_id"):
            await self.refs.actor("created_by", entity.created_by_id, entity.organization_id)


class UserValidator(EntityValidator[User]):
    async def check(self, entity: User, changed: Changed) -> None:
        await self._tenant(entity, changed)


class TaskValidator(EntityValidator[BaseTask]):
    """Checks shared by every task variant plus the variant-specific ones."""

    async def check(self, entity: BaseTask, changed: Changed) -> None:
        await self._tenant(entity, changed)
        org, dept = entity.organization_id, entity.department_id
        if touched(changed, "created_by_id", "organization_id", "department_id"):
            await self.refs.actor("created_by", entity.created_by_id, org, dept)
        if touched(changed, "watchers", "organization_id"):
            await self.refs.users(
                "watchers", entity.watchers, org, ReferenceLimits.MAX_WATCHERS, hod_only=True
            )
        if changed is not None and touched(changed, "attachments"):
            await self.refs.attachments(entity.attachments, entity.id, org)

        if isinstance(entity, AssignedTask) and touched(
            changed, "assignees", "organization_id", "department_id"
        ):
            await self.refs.users(
                "assignees",
                entity.assignees,
                org,
                ReferenceLimits.MAX_ASSIGNEES,
                department_id=dept,
            )
        if isinstance(entity, RoutineTask) and touched(changed, "materials", "organization_id"):
            entity.set_materials(await self.refs.line_items(entity.materials, org))
        if isinstance(entity, ProjectTask) and touched(changed, "vendor_id", "organization_id"):
            await self.refs.vendor(entity.vendor_id, org)


class TaskActivityValidator(EntityValidator[TaskActivity]):
    async def check(self, entity: TaskActivity, changed: Changed) -> None:
        await self._tenant(entity, changed)
        org, dept = entity.organization_id, entity.department_id
        if touched(changed, "created_by_id", "organization_id", "department_id"):
            await self.refs.actor("created_by", entity.created_by_id, org, dept)
        if touched(changed, "task_id", "task_model"):
            await self.refs.parent(
                "task", entity.task_id, entity.task_model, ACTIVITY_PARENT_MODELS, org, dept
            )
        if changed is not None and touched(changed, "attachments"):
            await self.refs.attachments(entity.attachments, entity.id, org)
        if touched(changed, "materials", "organization_id"):
            entity.set_materials(await self.refs.line_items(entity.materials, org))


class TaskCommentValidator(EntityValidator[TaskComment]):
    async def check(self, entity: TaskComment, changed: Changed) -> None:
        await self._tenant(entity, changed)
        org, dept = entity.organization_id, entity.department_id
        if touched(changed, "created_by_id", "organization_id"):
            await self.refs.actor("created_by", entity.created_by_id, org)
        if touched(changed, "parent_id", "parent_model"):
            await self.refs.parent(
                "parent", entity.parent_id, entity.parent_model, COMMENT_PARENT_MODELS, org, dept
            )
            if entity.parent_model == TaskComment.entity_type():
                await self._check_thread(entity)
        if touched(changed, "mentions", "organization_id"):
            await self.refs.users("mentions", entity.mentions, org, ReferenceLimits.MAX_MENTIONS)
        if changed is not None and touched(changed, "attachments"):
            await self.refs.attachments(entity.attachments, entity.id, org)

    async def _check_thread(self, entity: TaskComment) -> None:
        ancestors = await self.refs.comment_ancestors(entity.parent_id)
        if entity.id is not None and any(cid == entity.id for cid, _ in ancestors):
            raise ReferentialIntegrityError("parent", "Comment thread would form a cycle")
        parent_depth = max((depth for _, depth in ancestors), default=0)
        if parent_depth + 1 > ReferenceLimits.MAX_COMMENT_DEPTH:
            raise ReferentialIntegrityError(
                "parent",
                f"Comment threads are limited to {ReferenceLimits.MAX_COMMENT_DEPTH} levels",
                {"max_depth": ReferenceLimits.MAX_COMMENT_DEPTH},
            )


class MaterialValidator(EntityValidator[Material]):
    async def check(self, entity: Material, changed: Changed) -> None:
        await self._tenant(entity, changed)
        if touched(changed, "added_by_id", "organization_id", "department_id"):
            await self.refs.actor(
                "added_by", entity.added_by_id, entity.organization_id, entity.department_id
            )


class VendorValidator(EntityValidator[Vendor]):
    async def check(self, entity: Vendor, changed: Changed) -> None:
        await self._tenant(entity, changed)
        if touched(changed, "created_by_id", "organization_id"):
            await self.refs.actor("created_by", entity.created_by_id, entity.organization_id)


class AttachmentValidator(EntityValidator[Attachment]):
    async def check(self, entity: Attachment, changed: Changed) -> None:
        await self._tenant(entity, changed)
        org = entity.organization_id
        if touched(changed, "uploaded_by_id", "organization_id"):
            await self.refs.actor("uploaded_by", entity.uploaded_by_id, org)
        if touched(changed, "parent_id", "parent_model"):
            await self.refs.parent(
                "parent",
                entity.parent_id,
                entity.parent_model,
                ATTACHMENT_PARENT_MODELS,
                org,
                entity.department_id,
            )


class NotificationValidator(EntityValidator[Notification]):
    async def check(self, entity: Notification, changed: Changed) -> None:
        await self._tenant(entity, changed)
        org = entity.organization_id
        if touched(changed, "created_by_id", "organization_id"):
            await self.refs.actor("created_by", entity.created_by_id, org)
        if touched(changed, "recipients", "organization_id"):
            await self.refs.users(
                "recipients", entity.recipients, org, ReferenceLimits.MAX_NOTIFICATION_RECIPIENTS
            )
        if entity.entity_id is not None and touched(changed, "entity_id", "entity_model"):
            await self.refs.parent(
                "entity", entity.entity_id, entity.entity_model, NOTIFICATION_ENTITY_MODELS, org
            )


class ValidatorRegistry:
    """Maps model classes to validator classes."""

    validators: ClassVar[dict[type, type[EntityValidator[Any]]]] = {
        Organization: OrganizationValidator,
        Department: DepartmentValidator,
        User: UserValidator,
        BaseTask: TaskValidator,
        TaskActivity: TaskActivityValidator,
        TaskComment: TaskCommentValidator,
        Material: MaterialValidator,
        Vendor: VendorValidator,
        Attachment: AttachmentValidator,
        Notification: NotificationValidator,
    }

    @classmethod
    def lookup(cls, model: type) -> type[EntityValidator[Any]]:
        for klass in model.__mro__:
            if klass in cls.validators:
                return cls.validators[klass]
        return EntityValidator


def validator_for(model: type, session: AsyncSession) -> EntityValidator[Any]:
    """Build the validator for ``model`` bound to ``session``."""
    return ValidatorRegistry.lookup(model)(session)
