"""Task, task activity and task comment cascades.

Delete order:

- Task: activities -> comments -> attachments -> notifications -> task
- TaskActivity: attachments -> comments -> activity
- TaskComment: replies (depth first) -> attachments -> comment
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from src.app.cascade.base import ActorOwnedCascade
from src.domain.constants import TASK_MODELS
from src.domain.models import (
    ENTITY_MODELS,
    Attachment,
    BaseTask,
    Notification,
    TaskActivity,
    TaskComment,
)
from src.infrastructure.persistence.unit_of_work import IUnitOfWork


def children_of(
    model: Any, id_column: str, tag_column: str, id: UUID, tags: tuple[str, ...]
) -> tuple[Any, ...]:
    """Criteria selecting rows whose polymorphic reference points at ``id``."""
    return (getattr(model, id_column) == id, getattr(model, tag_column).in_(tags))


class TaskCascade(ActorOwnedCascade[BaseTask]):
    """Cascade shared by every task variant."""

    model = BaseTask

    async def delete_children(
        self, entity: BaseTask, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at}
        await self.registry.get("TaskActivity")._delete_matching(
            *children_of(TaskActivity, "task_id", "task_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("TaskComment")._delete_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("Attachment")._delete_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("Notification")._delete_matching(
            *children_of(Notification, "entity_id", "entity_model", entity.id, TASK_MODELS), **walk
        )

    async def restore_children(
        self,
        entity: BaseTask,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at, "cutoff": cutoff}
        await self.registry.get("TaskActivity")._restore_matching(
            *children_of(TaskActivity, "task_id", "task_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("TaskComment")._restore_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("Attachment")._restore_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, TASK_MODELS), **walk
        )
        await self.registry.get("Notification")._restore_matching(
            *children_of(Notification, "entity_id", "entity_model", entity.id, TASK_MODELS), **walk
        )


class TaskActivityCascade(ActorOwnedCascade[TaskActivity]):
    model = TaskActivity

    def parent_refs(self, entity: TaskActivity) -> list[tuple[str, type[Any], UUID | None]]:
        refs = super().parent_refs(entity)
        refs.append(("task", ENTITY_MODELS[entity.task_model], entity.task_id))
        return refs

    async def delete_children(
        self, entity: TaskActivity, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at}
        tag = (TaskActivity.entity_type(),)
        await self.registry.get("Attachment")._delete_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, tag), **walk
        )
        await self.registry.get("TaskComment")._delete_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, tag), **walk
        )

    async def restore_children(
        self,
        entity: TaskActivity,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at, "cutoff": cutoff}
        tag = (TaskActivity.entity_type(),)
        await self.registry.get("Attachment")._restore_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, tag), **walk
        )
        await self.registry.get("TaskComment")._restore_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, tag), **walk
        )


class TaskCommentCascade(ActorOwnedCascade[TaskComment]):
    model = TaskComment

    def parent_refs(self, entity: TaskComment) -> list[tuple[str, type[Any], UUID | None]]:
        refs = super().parent_refs(entity)
        refs.append(("parent", ENTITY_MODELS[entity.parent_model], entity.parent_id))
        return refs

    async def delete_children(
        self, entity: TaskComment, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at}
        tag = (TaskComment.entity_type(),)
        # Replies recurse through _delete_one, so the deepest reply goes first
        await self._delete_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, tag), **walk
        )
        await self.registry.get("Attachment")._delete_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, tag), **walk
        )

    async def restore_children(
        self,
        entity: TaskComment,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at, "cutoff": cutoff}
        tag = (TaskComment.entity_type(),)
        await self._restore_matching(
            *children_of(TaskComment, "parent_id", "parent_model", entity.id, tag), **walk
        )
        await self.registry.get("Attachment")._restore_matching(
            *children_of(Attachment, "parent_id", "parent_model", entity.id, tag), **walk
        )
