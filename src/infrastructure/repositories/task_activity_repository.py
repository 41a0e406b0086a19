"""Task activity repository for database operations."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import TaskActivity
from src.infrastructure.repositories.base_repository import BaseRepository, json_mentions


class TaskActivityRepository(BaseRepository[TaskActivity]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskActivity)

    async def find_using_material(
        self,
        material_id: UUID,
        organization_id: UUID,
        *,
        after: UUID | None = None,
        limit: int | None = None,
    ) -> list[TaskActivity]:
        """Live activities of an organization holding a line item for ``material_id``."""
        return await self.find_page(
            TaskActivity.organization_id == organization_id,
            json_mentions(TaskActivity.materials, material_id),
            after=after,
            limit=limit,
        )
