"""Material repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Material
from src.infrastructure.repositories.base_repository import BaseRepository


class MaterialRepository(BaseRepository[Material]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Material)
