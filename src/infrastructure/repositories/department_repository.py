"""Department repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Department
from src.infrastructure.repositories.base_repository import BaseRepository


class DepartmentRepository(BaseRepository[Department]):
    """Repository for departments of an organization."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Department)
