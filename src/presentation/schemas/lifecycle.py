"""Lifecycle API response schemas.

Every soft-deletable resource is rendered with the same envelope: identity,
tenant scope, tombstone fields, and the remaining columns under
``attributes``.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import inspect

from src.domain.models import TOMBSTONE_FIELDS


_ENVELOPE_FIELDS = frozenset({"id", "organization_id", "created_at", "updated_at"})


class TombstoneAudit(BaseModel):
    """Tombstone fields of one record."""

    is_deleted: bool = Field(..., description="Whether the record is tombstoned")
    deleted_at: datetime | None = Field(None, description="When the record was tombstoned")
    deleted_by_id: UUID | None = Field(None, description="Who tombstoned the record")
    restored_at: datetime | None = Field(None, description="Most recent restore")
    restored_by_id: UUID | None = Field(None, description="Who performed the most recent restore")
    restore_count: int = Field(0, description="Number of restores so far")


class EntityResponse(TombstoneAudit):
    """Response schema for any soft-deletable record."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "id": "018c5e9e-1234-7000-8000-000000000001",
                    "entity_type": "Vendor",
                    "organization_id": "018c5e9e-1234-7000-8000-0000000000aa",
                    "is_deleted": True,
                    "deleted_at": "2025-03-01T10:30:00Z",
                    "deleted_by_id": "018c5e9e-1234-7000-8000-0000000000bb",
                    "restored_at": None,
                    "restored_by_id": None,
                    "restore_count": 0,
                    "created_at": "2025-01-15T10:30:00Z",
                    "updated_at": "2025-03-01T10:30:00Z",
                    "attributes": {"name": "Acme Supplies"},
                }
            ]
        },
    )

    id: UUID = Field(..., description="Unique identifier (UUIDv7)")
    entity_type: str = Field(..., description="Type tag of the record")
    organization_id: UUID | None = Field(None, description="Owning organization")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last modification timestamp (UTC)")
    attributes: dict[str, Any] = Field(
        default_factory=dict, description="Remaining columns of the record"
    )

    @classmethod
    def from_entity(cls, entity: Any) -> "EntityResponse":
        """Render a loaded ORM record."""
        mapper = inspect(entity).mapper
        columns = {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}
        attributes = {
            key: value
            for key, value in columns.items()
            if key not in TOMBSTONE_FIELDS and key not in _ENVELOPE_FIELDS
        }
        return cls(
            id=entity.id,
            entity_type=entity.entity_type(),
            organization_id=columns.get("organization_id", entity.id),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            attributes=attributes,
            **entity.tombstone_state,
        )


class EntityListResponse(BaseModel):
    """Response schema for paginated record lists."""

    items: list[EntityResponse] = Field(..., description="Records in current page")
    total: int = Field(..., description="Total number of matching records")
    skip: int = Field(..., description="Number of records skipped")
    limit: int = Field(..., description="Maximum records per page")


class RestoreAuditResponse(TombstoneAudit):
    """Response schema for the restore audit of one record."""

    id: UUID = Field(..., description="Record identifier")
    entity_type: str = Field(..., description="Type tag of the record")


class ReaperRunResponse(BaseModel):
    """Response schema for a queued reaper run."""

    task_id: str = Field(..., description="Celery task id of the queued run")
    status: str = Field(default="queued")
