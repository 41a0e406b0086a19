"""Task repository covering every variant of the single-table task hierarchy."""

from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.constants import TaskType
from src.domain.models import AssignedTask, BaseTask, ProjectTask, RoutineTask
from src.infrastructure.repositories.base_repository import BaseRepository, json_mentions


class TaskRepository(BaseRepository[BaseTask]):
    """Repository for tasks.

    Queries against ``BaseTask`` return instances of the concrete variants.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, BaseTask)

    async def find_linking_user(
        self,
        user_id: UUID,
        organization_id: UUID,
        *,
        after: UUID | None = None,
        limit: int | None = None,
    ) -> list[BaseTask]:
        """Live tasks of an organization listing ``user_id`` as a watcher or assignee."""
        return await self.find_page(
            BaseTask.organization_id == organization_id,
            or_(
                json_mentions(BaseTask.watchers, user_id),
                json_mentions(AssignedTask.assignees, user_id),
            ),
            after=after,
            limit=limit,
        )

    async def find_using_material(
        self,
        material_id: UUID,
        organization_id: UUID,
        *,
        after: UUID | None = None,
        limit: int | None = None,
    ) -> list[BaseTask]:
        """Live routine tasks of an organization holding a line item for ``material_id``."""
        return await self.find_page(
            BaseTask.organization_id == organization_id,
            BaseTask.task_type == TaskType.ROUTINE_TASK.value,
            json_mentions(RoutineTask.materials, material_id),
            after=after,
            limit=limit,
        )

    async def find_referencing_vendor(self, vendor_id: UUID) -> list[BaseTask]:
        return await self.find(
            BaseTask.task_type == TaskType.PROJECT_TASK.value,
            ProjectTask.vendor_id == vendor_id,
        )

    async def reassign_vendor(self, vendor_id: UUID, replacement_id: UUID) -> int:
        """Repoint every live project task from ``vendor_id`` to ``replacement_id``.

        Returns:
            Number of tasks repointed
        """
        await self._session.flush()
        statement = (
            update(ProjectTask)
            .where(ProjectTask.vendor_id == vendor_id, ProjectTask.is_deleted.is_(False))
            .values(vendor_id=replacement_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(statement)
        return int(result.rowcount)  # type: ignore[attr-defined]
