"""External vendor delivering project tasks."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes


class Vendor(SoftDeleteMixin, BaseEntity):
    """Vendor of an organization, referenced by project tasks."""

    __tablename__ = "vendors"
    __retention_days__ = RetentionDays.VENDORS

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    organization_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    @validates("email")
    def normalize_email(self, _key: str, value: str | None) -> str | None:
        return value.lower() if value else value

    __table_args__ = (*tombstone_indexes("vendors", "organization_id"),)
