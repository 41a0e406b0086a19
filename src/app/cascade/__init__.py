"""Cascading soft delete and restore orchestrators."""

from src.app.cascade.base import CascadeOrchestrator, require_transaction
from src.app.cascade.leaf import AttachmentCascade, NotificationCascade
from src.app.cascade.material import MaterialCascade, VendorCascade
from src.app.cascade.organization import DepartmentCascade, OrganizationCascade
from src.app.cascade.registry import CascadeRegistry, build_cascade_registry
from src.app.cascade.task import TaskActivityCascade, TaskCascade, TaskCommentCascade
from src.app.cascade.user import UserCascade


__all__ = [
    "AttachmentCascade",
    "CascadeOrchestrator",
    "CascadeRegistry",
    "DepartmentCascade",
    "MaterialCascade",
    "NotificationCascade",
    "OrganizationCascade",
    "TaskActivityCascade",
    "TaskCascade",
    "TaskCommentCascade",
    "UserCascade",
    "VendorCascade",
    "build_cascade_registry",
    "require_transaction",
]
