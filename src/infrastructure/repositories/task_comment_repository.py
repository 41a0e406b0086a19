"""Task comment repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import TaskComment
from src.infrastructure.repositories.base_repository import BaseRepository


class TaskCommentRepository(BaseRepository[TaskComment]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskComment)
