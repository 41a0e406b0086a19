"""Threaded comments on tasks, activities and other comments."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes
from src.domain.models.types import UUIDList


class TaskComment(SoftDeleteMixin, BaseEntity):
    """Comment whose parent is a task, an activity or another comment.

    Replies form a thread through ``parent_model == "TaskComment"``; the
    thread depth is bounded and must stay acyclic.

    Attributes:
        parent_id: Parent record id
        parent_model: Type tag of the parent record
        comment: Comment body
        mentions: Users of the same organization mentioned in the comment
        attachments: Attachments whose parent is this comment
    """

    __tablename__ = "task_comments"
    __retention_days__ = RetentionDays.TASK_COMMENTS

    parent_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    parent_model: Mapped[str] = mapped_column(String(20), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    mentions: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
    attachments: Mapped[list[UUID]] = mapped_column(UUIDList, nullable=False, default=list)
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

    __table_args__ = (*tombstone_indexes("task_comments", "organization_id", "parent_id"),)
