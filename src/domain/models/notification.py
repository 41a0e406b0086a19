"""In-app notification about an arbitrary entity."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes, utcnow
from src.domain.models.types import TZDateTime, UUIDList


class Notification(SoftDeleteMixin, BaseEntity):
    """Notification sent to users of one organization.

    Attributes:
        type: Notification kind (Created, Updated, Deleted, Restored, Mention, ...)
        title: Short title
        message: Body
        entity_id: Optional target record id
        entity_model: Type tag of the target record
        recipients: Users of the same organization receiving the notification
        created_by_id: User who triggered the notification
        sent_at: Delivery timestamp
    """

    __tablename__ = "notifications"
    __retention_days__ = RetentionDays.NOTIFICATIONS

    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    entity_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    entity_model: Mapped[str | None] = mapped_column(String(20), nullable=True)
    recipients: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
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
    created_by_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    sent_at: Mapped[datetime] = mapped_column(TZDateTime, nullable=False, default=utcnow)

    __table_args__ = (*tombstone_indexes("notifications", "organization_id", "department_id"),)
