"""Task hierarchy stored in one ``tasks`` table with a ``task_type`` discriminator.

``BaseTask`` carries the fields common to every variant; the concrete
variants add their own columns (nullable at the table level):

- ``RoutineTask``: a dated task logging material usage directly
- ``AssignedTask``: a task assigned to users of the same department
- ``ProjectTask``: a task delivered by an external vendor
"""

import datetime as dt
from uuid import UUID

from sqlalchemy import Date, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays, TaskType
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes
from src.domain.models.line_items import MaterialUsageMixin
from src.domain.models.types import JSONType, TZDateTime, UUIDList


class BaseTask(SoftDeleteMixin, BaseEntity):
    """Common task fields. Never instantiated directly.

    Attributes:
        task_type: Discriminator naming the concrete variant
        title: Short title
        description: Long description
        status: Workflow status (To Do, In Progress, Completed, Pending)
        priority: Low, Medium, High or Urgent
        organization_id: Owning organization
        department_id: Owning department
        created_by_id: Creator (same organization and department)
        watchers: HOD users following the task
        attachments: Attachments whose parent is this task
        tags: Free-form labels
    """

    __tablename__ = "tasks"
    __retention_days__ = RetentionDays.TASKS

    task_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="To Do")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="Medium")
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
    watchers: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
    attachments: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    start_date: Mapped[dt.datetime | None] = mapped_column(TZDateTime, nullable=True)
    due_date: Mapped[dt.datetime | None] = mapped_column(TZDateTime, nullable=True)

    __mapper_args__ = {"polymorphic_on": "task_type", "with_polymorphic": "*"}

    __table_args__ = (*tombstone_indexes("tasks", "organization_id", "department_id"),)

    def __repr__(self) -> str:
        return f"<{self.task_type}(id={self.id}, title={self.title!r})>"


class RoutineTask(MaterialUsageMixin, BaseTask):
    """Routine work performed on a given date, logging materials directly."""

    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    __mapper_args__ = {"polymorphic_identity": TaskType.ROUTINE_TASK.value}


class AssignedTask(BaseTask):
    """Task assigned to one or more users of the same department."""

    assignees: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=True, default=list)

    __mapper_args__ = {"polymorphic_identity": TaskType.ASSIGNED_TASK.value}


class ProjectTask(BaseTask):
    """Task delivered by an external vendor of the same organization."""

    vendor_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    estimated_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True, default="USD")

    __mapper_args__ = {"polymorphic_identity": TaskType.PROJECT_TASK.value}
