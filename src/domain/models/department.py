"""Department domain model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes


class Department(SoftDeleteMixin, BaseEntity):
    """Department within an organization.

    Attributes:
        name: Department name, unique among live departments of the organization
        description: Optional description
        organization_id: Owning organization
        created_by_id: User who created the department
    """

    __tablename__ = "departments"
    __retention_days__ = RetentionDays.DEPARTMENTS

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    organization_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        *tombstone_indexes("departments", "organization_id"),
        Index(
            "uq_departments_live_name",
            "organization_id",
            "name",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )
