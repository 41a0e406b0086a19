"""User repository for database operations.

This module implements user-specific database queries, including the role
counts used by the last-administrator guards of the user cascade.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models import User
from src.infrastructure.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """User-specific repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository with database session.

        Args:
            session: Active async SQLAlchemy session
        """
        super().__init__(session, User)

    async def count_with_roles(
        self,
        organization_id: UUID,
        roles: Iterable[str],
        department_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> int:
        """Count live users holding one of ``roles``.

        Args:
            organization_id: Tenant scope
            roles: Accepted role names
            department_id: Optional department scope
            exclude_id: User left out of the count (the one about to be deleted)

        Returns:
            Number of matching live users
        """
        query = select(func.count(User.id)).where(
            User.organization_id == organization_id,
            User.role.in_([str(role) for role in roles]),
        )
        if department_id is not None:
            query = query.where(User.department_id == department_id)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self._session.execute(query)
        return int(result.scalar_one())
