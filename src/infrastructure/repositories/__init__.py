"""Repository implementations."""

from src.infrastructure.repositories.attachment_repository import AttachmentRepository
from src.infrastructure.repositories.base_repository import BaseRepository
from src.infrastructure.repositories.department_repository import DepartmentRepository
from src.infrastructure.repositories.material_repository import MaterialRepository
from src.infrastructure.repositories.notification_repository import NotificationRepository
from src.infrastructure.repositories.organization_repository import OrganizationRepository
from src.infrastructure.repositories.task_activity_repository import TaskActivityRepository
from src.infrastructure.repositories.task_comment_repository import TaskCommentRepository
from src.infrastructure.repositories.task_repository import TaskRepository
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.repositories.vendor_repository import VendorRepository


__all__ = [
    "AttachmentRepository",
    "BaseRepository",
    "DepartmentRepository",
    "MaterialRepository",
    "NotificationRepository",
    "OrganizationRepository",
    "TaskActivityRepository",
    "TaskCommentRepository",
    "TaskRepository",
    "UserRepository",
    "VendorRepository",
]
