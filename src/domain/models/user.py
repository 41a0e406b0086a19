"""User domain model scoped to an organization and department."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.domain.constants import HOD_ROLES, RetentionDays, UserRole
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes


class User(SoftDeleteMixin, BaseEntity):
    """User entity belonging to one department of one organization.

    Attributes:
        first_name: Given name
        last_name: Family name
        email: Email address (normalized to lowercase), unique per organization
        role: One of SuperAdmin, Admin, Manager, User
        position: Job title
        organization_id: Owning organization
        department_id: Owning department
        is_platform_user: Member of the platform organization
    """

    __tablename__ = "users"
    __retention_days__ = RetentionDays.USERS

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="User email address (normalized to lowercase for consistency)",
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.USER.value)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    organization_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_platform_user: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @validates("email")
    def normalize_email(self, _key: str, value: str) -> str:
        """Normalize email address to lowercase for case-insensitive uniqueness."""
        return value.lower() if value else value

    @property
    def is_hod(self) -> bool:
        """Whether the user holds a Head of Department role."""
        return self.role in HOD_ROLES

    __table_args__ = (
        *tombstone_indexes("users", "organization_id", "department_id"),
        Index(
            "uq_users_live_email",
            "organization_id",
            "email",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    def __repr__(self) -> str:
        """Generate string representation showing user identification details."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
