"""Organization repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Organization
from src.infrastructure.repositories.base_repository import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for tenant roots."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Organization)
