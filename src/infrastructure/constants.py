"""Application-wide constants and limits."""


class PaginationDefaults:
    """Default values for pagination."""

    DEFAULT_PAGE_SIZE = 20  # Default number of items per page
    MAX_PAGE_SIZE = 100  # Maximum number of items per page
    MAX_SKIP = 10000  # Maximum offset for pagination


class ReaperDefaults:
    """Tombstone reaper scheduling."""

    CRON = "0 3 * * *"  # Daily at 03:00 UTC
    TASK_NAME = "tombstones.purge_expired"
