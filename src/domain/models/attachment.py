"""File attachment metadata (storage itself is external)."""

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes


class Attachment(SoftDeleteMixin, BaseEntity):
    """Attachment belonging to a task, an activity or a comment.

    Attributes:
        original_name: File name as uploaded
        stored_name: File name in the storage backend
        mime_type: Content type
        size: Size in bytes
        url: Public URL served by the storage backend
        parent_id: Parent record id
        parent_model: Type tag of the parent record
        uploaded_by_id: Uploading user
    """

    __tablename__ = "attachments"
    __retention_days__ = RetentionDays.ATTACHMENTS

    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stored_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    parent_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    parent_model: Mapped[str] = mapped_column(String(20), nullable=False)
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
    uploaded_by_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)

    __table_args__ = (*tombstone_indexes("attachments", "organization_id", "parent_id"),)
