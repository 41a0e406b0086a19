"""Lifecycle API endpoints: list, read, soft delete, restore and restore audit.

Each soft-deletable resource is addressed by a URL slug; ``tasks`` covers
every task variant.
"""

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query, status

from src.app.usecases.lifecycle_usecases import (
    GetEntityUseCase,
    GetRestoreAuditUseCase,
    ListEntitiesUseCase,
    RestoreEntityUseCase,
    SoftDeleteEntityUseCase,
)
from src.container import Container
from src.domain.actor_claims import ActorTokenClaims
from src.domain.interfaces import DeletedFilter
from src.infrastructure.constants import PaginationDefaults
from src.presentation.api.dependencies import get_actor
from src.presentation.schemas.error import ErrorResponse
from src.presentation.schemas.lifecycle import (
    EntityListResponse,
    EntityResponse,
    RestoreAuditResponse,
)


router = APIRouter(prefix="/entities", tags=["lifecycle"])


class EntitySlug(StrEnum):
    """URL names of the soft-deletable resources."""

    ORGANIZATIONS = "organizations"
    DEPARTMENTS = "departments"
    USERS = "users"
    TASKS = "tasks"
    TASK_ACTIVITIES = "task-activities"
    TASK_COMMENTS = "task-comments"
    MATERIALS = "materials"
    VENDORS = "vendors"
    ATTACHMENTS = "attachments"
    NOTIFICATIONS = "notifications"


ENTITY_TYPES: dict[EntitySlug, str] = {
    EntitySlug.ORGANIZATIONS: "Organization",
    EntitySlug.DEPARTMENTS: "Department",
    EntitySlug.USERS: "User",
    EntitySlug.TASKS: "BaseTask",
    EntitySlug.TASK_ACTIVITIES: "TaskActivity",
    EntitySlug.TASK_COMMENTS: "TaskComment",
    EntitySlug.MATERIALS: "Material",
    EntitySlug.VENDORS: "Vendor",
    EntitySlug.ATTACHMENTS: "Attachment",
    EntitySlug.NOTIFICATIONS: "Notification",
}

_COMMON_ERRORS = {
    status.HTTP_401_UNAUTHORIZED: {
        "description": "Missing or invalid actor token",
        "model": ErrorResponse,
    },
    status.HTTP_403_FORBIDDEN: {
        "description": "The actor's role does not allow this operation",
        "model": ErrorResponse,
    },
    status.HTTP_404_NOT_FOUND: {
        "description": "Record not found",
        "model": ErrorResponse,
    },
}


@router.get(
    "/{slug}",
    response_model=EntityListResponse,
    status_code=status.HTTP_200_OK,
    summary="List Records",
    description="""
List records of the actor's organization.

Use `deleted` to choose the visibility of tombstoned records:
- `exclude` (default): live records only
- `include`: live and tombstoned records
- `only`: tombstoned records only (the trash view)
    """,
    responses={
        **_COMMON_ERRORS,
        status.HTTP_422_UNPROCESSABLE_CONTENT: {
            "description": "Invalid pagination parameters",
            "model": ErrorResponse,
        },
    },
)
@inject
async def list_entities(
    slug: EntitySlug,
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
    use_case: Annotated[
        ListEntitiesUseCase, Depends(Provide[Container.use_cases.list_entities])
    ],
    deleted: Annotated[
        DeletedFilter, Query(description="Visibility of tombstoned records")
    ] = DeletedFilter.EXCLUDE,
    skip: Annotated[
        int,
        Query(
            ge=0,
            le=PaginationDefaults.MAX_SKIP,
            description="Number of records to skip (max 10000)",
        ),
    ] = 0,
    limit: Annotated[
        int,
        Query(
            ge=1,
            le=PaginationDefaults.MAX_PAGE_SIZE,
            description="Maximum records to return (max 100)",
        ),
    ] = PaginationDefaults.DEFAULT_PAGE_SIZE,
    organization_id: Annotated[
        UUID | None, Query(description="Organization to list (platform users only)")
    ] = None,
) -> EntityListResponse:
    """List records with pagination and tombstone visibility."""
    items, total = await use_case.execute(
        ENTITY_TYPES[slug],
        actor,
        skip=skip,
        limit=limit,
        deleted=deleted,
        organization_id=organization_id,
    )
    return EntityListResponse(
        items=[EntityResponse.from_entity(item) for item in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{slug}/{entity_id}",
    response_model=EntityResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Record",
    responses=_COMMON_ERRORS,
)
@inject
async def get_entity(
    slug: EntitySlug,
    entity_id: Annotated[UUID, Path(description="Record identifier")],
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
    use_case: Annotated[GetEntityUseCase, Depends(Provide[Container.use_cases.get_entity])],
    include_deleted: Annotated[
        bool, Query(description="Return the record even if tombstoned")
    ] = False,
) -> EntityResponse:
    """Get one record by ID."""
    entity = await use_case.execute(
        ENTITY_TYPES[slug], entity_id, actor, include_deleted=include_deleted
    )
    return EntityResponse.from_entity(entity)


@router.delete(
    "/{slug}/{entity_id}",
    response_model=EntityResponse,
    status_code=status.HTTP_200_OK,
    summary="Soft Delete Record",
    description="""
Tombstone a record and every record depending on it, atomically.

The response is the tombstoned record. Restoring it brings back the
children that were deleted with it.

Vendors still referenced by project tasks require `reassign_to`, the
replacement vendor of the same organization.
    """,
    responses={
        **_COMMON_ERRORS,
        status.HTTP_409_CONFLICT: {
            "description": "Already deleted, or a business rule forbids the delete",
            "model": ErrorResponse,
        },
        status.HTTP_422_UNPROCESSABLE_CONTENT: {
            "description": "Invalid replacement vendor",
            "model": ErrorResponse,
        },
    },
)
@inject
async def soft_delete_entity(
    slug: EntitySlug,
    entity_id: Annotated[UUID, Path(description="Record identifier")],
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
    use_case: Annotated[
        SoftDeleteEntityUseCase, Depends(Provide[Container.use_cases.soft_delete_entity])
    ],
    reassign_to: Annotated[
        UUID | None, Query(description="Replacement vendor (vendors only)")
    ] = None,
) -> EntityResponse:
    """Soft delete one record with cascade."""
    entity = await use_case.execute(
        ENTITY_TYPES[slug], entity_id, actor, reassign_to=reassign_to
    )
    return EntityResponse.from_entity(entity)


@router.post(
    "/{slug}/{entity_id}/restore",
    response_model=EntityResponse,
    status_code=status.HTTP_200_OK,
    summary="Restore Record",
    description="""
Restore a tombstoned record and the children deleted with it.

Fails with 422 when a parent of the record is still tombstoned.
    """,
    responses={
        **_COMMON_ERRORS,
        status.HTTP_409_CONFLICT: {
            "description": "Record is not deleted",
            "model": ErrorResponse,
        },
        status.HTTP_422_UNPROCESSABLE_CONTENT: {
            "description": "A parent of the record is tombstoned",
            "model": ErrorResponse,
        },
    },
)
@inject
async def restore_entity(
    slug: EntitySlug,
    entity_id: Annotated[UUID, Path(description="Record identifier")],
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
    use_case: Annotated[
        RestoreEntityUseCase, Depends(Provide[Container.use_cases.restore_entity])
    ],
) -> EntityResponse:
    """Restore one record with cascade."""
    entity = await use_case.execute(ENTITY_TYPES[slug], entity_id, actor)
    return EntityResponse.from_entity(entity)


@router.get(
    "/{slug}/{entity_id}/restore-audit",
    response_model=RestoreAuditResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Restore Audit",
    responses=_COMMON_ERRORS,
)
@inject
async def get_restore_audit(
    slug: EntitySlug,
    entity_id: Annotated[UUID, Path(description="Record identifier")],
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
    use_case: Annotated[
        GetRestoreAuditUseCase, Depends(Provide[Container.use_cases.get_restore_audit])
    ],
) -> RestoreAuditResponse:
    """Get the tombstone fields of one record, live or not."""
    audit = await use_case.execute(ENTITY_TYPES[slug], entity_id, actor)
    return RestoreAuditResponse(**audit)
