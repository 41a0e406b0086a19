"""Notification repository for database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import Notification
from src.infrastructure.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)
