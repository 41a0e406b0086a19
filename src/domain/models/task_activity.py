"""Task activity: a progress log entry on an assigned or project task."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes, utcnow
from src.domain.models.line_items import MaterialUsageMixin
from src.domain.models.types import TZDateTime, UUIDList


class TaskActivity(MaterialUsageMixin, SoftDeleteMixin, BaseEntity):
    """Progress entry attached to a task through ``task_id`` + ``task_model``.

    Attributes:
        task_id: Parent task id
        task_model: Concrete task variant of the parent (AssignedTask or ProjectTask)
        activity: Description of the work performed
        attachments: Attachments whose parent is this activity
        logged_at: When the work was logged
    """

    __tablename__ = "task_activities"
    __retention_days__ = RetentionDays.TASK_ACTIVITIES

    task_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    task_model: Mapped[str] = mapped_column(String(20), nullable=False)
    activity: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
    logged_at: Mapped[datetime] = mapped_column(TZDateTime, nullable=False, default=utcnow)
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

    __table_args__ = (*tombstone_indexes("task_activities", "organization_id", "task_id"),)
