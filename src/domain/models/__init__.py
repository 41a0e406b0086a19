"""Domain models."""

from src.domain.models.attachment import Attachment
from src.domain.models.base import (
    TOMBSTONE_FIELDS,
    TOMBSTONE_TRANSITION,
    Base,
    BaseEntity,
    SoftDeleteMixin,
)
from src.domain.models.department import Department
from src.domain.models.material import Material
from src.domain.models.notification import Notification
from src.domain.models.organization import Organization
from src.domain.models.task import AssignedTask, BaseTask, ProjectTask, RoutineTask
from src.domain.models.task_activity import TaskActivity
from src.domain.models.task_comment import TaskComment
from src.domain.models.user import User
from src.domain.models.vendor import Vendor


# Type tag -> model class, used to resolve polymorphic references
ENTITY_MODELS: dict[str, type[SoftDeleteMixin]] = {
    "Organization": Organization,
    "Department": Department,
    "User": User,
    "BaseTask": BaseTask,
    "RoutineTask": RoutineTask,
    "AssignedTask": AssignedTask,
    "ProjectTask": ProjectTask,
    "TaskActivity": TaskActivity,
    "TaskComment": TaskComment,
    "Material": Material,
    "Vendor": Vendor,
    "Attachment": Attachment,
    "Notification": Notification,
}


__all__ = [
    "ENTITY_MODELS",
    "TOMBSTONE_FIELDS",
    "TOMBSTONE_TRANSITION",
    "AssignedTask",
    "Attachment",
    "Base",
    "BaseEntity",
    "BaseTask",
    "Department",
    "Material",
    "Notification",
    "Organization",
    "ProjectTask",
    "RoutineTask",
    "SoftDeleteMixin",
    "TaskActivity",
    "TaskComment",
    "User",
    "Vendor",
]
