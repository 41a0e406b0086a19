"""Domain-wide constants: roles, polymorphic tags, reference limits and retention."""

from enum import StrEnum


class UserRole(StrEnum):
    """User roles in descending order of privilege."""

    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"


# Head of Department roles (the two most senior roles)
HOD_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})


class TaskType(StrEnum):
    """Concrete task variants stored in the shared ``tasks`` table."""

    ROUTINE_TASK = "RoutineTask"
    ASSIGNED_TASK = "AssignedTask"
    PROJECT_TASK = "ProjectTask"


TASK_MODELS = tuple(t.value for t in TaskType)

# Polymorphic parent tags accepted by each child type
ACTIVITY_PARENT_MODELS = (TaskType.ASSIGNED_TASK.value, TaskType.PROJECT_TASK.value)
COMMENT_PARENT_MODELS = (*TASK_MODELS, "TaskActivity", "TaskComment")
ATTACHMENT_PARENT_MODELS = (*TASK_MODELS, "TaskActivity", "TaskComment")
NOTIFICATION_ENTITY_MODELS = (
    *TASK_MODELS,
    "TaskActivity",
    "TaskComment",
    "Organization",
    "Department",
    "User",
    "Material",
    "Vendor",
    "Attachment",
)


class ReferenceLimits:
    """Cardinality limits for list-valued references."""

    MAX_ATTACHMENTS = 10
    MAX_WATCHERS = 20
    MAX_ASSIGNEES = 20
    MAX_MATERIALS = 20
    MAX_MENTIONS = 5
    MAX_NOTIFICATION_RECIPIENTS = 500
    MAX_COMMENT_DEPTH = 3


class RetentionDays:
    """Days a tombstoned record is kept before the reaper purges it.

    ``None`` means the record is never purged.
    """

    ORGANIZATIONS: int | None = None
    DEPARTMENTS = 365
    USERS = 365
    TASKS = 180
    TASK_ACTIVITIES = 90
    TASK_COMMENTS = 180
    MATERIALS = 90
    VENDORS = 90
    ATTACHMENTS = 30
    NOTIFICATIONS = 30


class CascadeDefaults:
    """Defaults for cursor-batched cascades."""

    BATCH_SIZE = 100
