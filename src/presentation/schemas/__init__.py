"""API schemas."""

from src.presentation.schemas.error import ErrorDetail, ErrorResponse
from src.presentation.schemas.lifecycle import (
    EntityListResponse,
    EntityResponse,
    ReaperRunResponse,
    RestoreAuditResponse,
    TombstoneAudit,
)


__all__ = [
    "EntityListResponse",
    "EntityResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ReaperRunResponse",
    "RestoreAuditResponse",
    "TombstoneAudit",
]
