"""Vendor repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Vendor
from src.infrastructure.repositories.base_repository import BaseRepository


class VendorRepository(BaseRepository[Vendor]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Vendor)
