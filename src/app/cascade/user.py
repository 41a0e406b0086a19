"""User cascade.

Delete order: tasks created by the user -> activities -> comments ->
attachments uploaded -> notifications created -> pull the user out of the
remaining tasks' watcher and assignee lists -> user.

Watcher and assignee lists are not rebuilt on restore.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from src.app.cascade.base import CascadeOrchestrator
from src.domain.constants import HOD_ROLES, UserRole
from src.domain.exceptions import BusinessRuleViolationError
from src.domain.models import (
    AssignedTask,
    Attachment,
    BaseTask,
    Notification,
    TaskActivity,
    TaskComment,
    User,
)
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.unit_of_work import IUnitOfWork


logger = get_logger(__name__)


class UserCascade(CascadeOrchestrator[User]):
    model = User

    async def guard_delete(self, entity: User, tx: IUnitOfWork) -> None:
        """Keep at least one SuperAdmin per organization and one HOD per department."""
        if entity.role == UserRole.SUPER_ADMIN:
            remaining = await tx.users.count_with_roles(
                entity.organization_id, [UserRole.SUPER_ADMIN], exclude_id=entity.id
            )
            if remaining == 0:
                raise BusinessRuleViolationError(
                    "Cannot delete the last SuperAdmin of an organization",
                    {"user_id": str(entity.id), "organization_id": str(entity.organization_id)},
                )
        if entity.is_hod:
            remaining = await tx.users.count_with_roles(
                entity.organization_id,
                HOD_ROLES,
                department_id=entity.department_id,
                exclude_id=entity.id,
            )
            if remaining == 0:
                raise BusinessRuleViolationError(
                    "Cannot delete the last head of department",
                    {"user_id": str(entity.id), "department_id": str(entity.department_id)},
                )

    async def delete_children(
        self, entity: User, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at}
        await self.registry.get("BaseTask")._delete_matching(
            BaseTask.created_by_id == entity.id, **walk
        )
        await self.registry.get("TaskActivity")._delete_matching(
            TaskActivity.created_by_id == entity.id, **walk
        )
        await self.registry.get("TaskComment")._delete_matching(
            TaskComment.created_by_id == entity.id, **walk
        )
        await self.registry.get("Attachment")._delete_matching(
            Attachment.uploaded_by_id == entity.id, **walk
        )
        await self.registry.get("Notification")._delete_matching(
            Notification.created_by_id == entity.id, **walk
        )
        await self._unlink_from_tasks(entity, tx)

    async def restore_children(
        self,
        entity: User,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        walk: dict[str, Any] = {"tx": tx, "actor_id": actor_id, "at": at, "cutoff": cutoff}
        await self.registry.get("BaseTask")._restore_matching(
            BaseTask.created_by_id == entity.id, **walk
        )
        await self.registry.get("TaskActivity")._restore_matching(
            TaskActivity.created_by_id == entity.id, **walk
        )
        await self.registry.get("TaskComment")._restore_matching(
            TaskComment.created_by_id == entity.id, **walk
        )
        await self.registry.get("Attachment")._restore_matching(
            Attachment.uploaded_by_id == entity.id, **walk
        )
        await self.registry.get("Notification")._restore_matching(
            Notification.created_by_id == entity.id, **walk
        )

    async def _unlink_from_tasks(self, entity: User, tx: IUnitOfWork) -> None:
        unlinked = 0
        after: UUID | None = None
        while True:
            tasks = await tx.tasks.find_linking_user(
                entity.id, entity.organization_id, after=after, limit=self.batch_size
            )
            if not tasks:
                break
            for task in tasks:
                task.watchers = [w for w in task.watchers or [] if w != entity.id]
                if isinstance(task, AssignedTask):
                    task.assignees = [a for a in task.assignees or [] if a != entity.id]
                await tx.tasks.update(task, validate=False)
            unlinked += len(tasks)
            after = tasks[-1].id
        if unlinked:
            logger.info("user_unlinked_from_tasks", user_id=str(entity.id), tasks=unlinked)
