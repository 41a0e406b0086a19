"""Attachment repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Attachment
from src.infrastructure.repositories.base_repository import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Attachment)
