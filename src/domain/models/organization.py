"""Organization domain model: the root tenant."""

from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes


class Organization(SoftDeleteMixin, BaseEntity):
    """Tenant root. Every other record is scoped to exactly one organization.

    The organization flagged ``is_platform_org`` represents the platform
    operator itself and can never be deleted. Organizations are never purged
    by the reaper.

    Attributes:
        name: Display name, unique among live organizations
        email: Contact address (normalized to lowercase)
        description: Optional free-form description
        is_platform_org: Marks the platform operator's own tenant
        created_by_id: User who created the organization
    """

    __tablename__ = "organizations"
    __retention_days__ = RetentionDays.ORGANIZATIONS

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Organization name")
    email: Mapped[str] = mapped_column(String(255), nullable=False, comment="Contact email")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_platform_org: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Platform operator tenant; protected from deletion",
    )
    created_by_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    @validates("email")
    def normalize_email(self, _key: str, value: str) -> str:
        """Normalize email address to lowercase."""
        return value.lower() if value else value

    __table_args__ = (
        *tombstone_indexes("organizations", "is_platform_org", retained=False),
        # Live organization names are unique; tombstoned names may be reused
        Index(
            "uq_organizations_live_name",
            "name",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )
