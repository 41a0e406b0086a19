"""Maintenance endpoints for platform operators."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.app.tasks.reaper_tasks import purge_expired_tombstones
from src.domain.actor_claims import ActorTokenClaims
from src.domain.constants import UserRole
from src.domain.exceptions import AuthorizationError
from src.infrastructure.logging.config import get_logger
from src.presentation.api.dependencies import get_actor
from src.presentation.schemas.error import ErrorResponse
from src.presentation.schemas.lifecycle import ReaperRunResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def require_platform_super_admin(
    actor: Annotated[ActorTokenClaims, Depends(get_actor)],
) -> ActorTokenClaims:
    """Only SuperAdmins of the platform organization may run maintenance."""
    if not actor.is_platform_user or actor.role != UserRole.SUPER_ADMIN:
        raise AuthorizationError(
            "Maintenance requires a platform SuperAdmin",
            {"role": actor.role.value, "is_platform_user": actor.is_platform_user},
        )
    return actor


@router.post(
    "/reaper",
    response_model=ReaperRunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Run Tombstone Reaper",
    description="""
Queue an out-of-schedule run of the tombstone reaper.

The reaper permanently removes tombstoned records older than their
retention period. Organizations are never purged.
    """,
    responses={
        status.HTTP_401_UNAUTHORIZED: {
            "description": "Missing or invalid actor token",
            "model": ErrorResponse,
        },
        status.HTTP_403_FORBIDDEN: {
            "description": "Actor is not a platform SuperAdmin",
            "model": ErrorResponse,
        },
    },
)
async def run_reaper(
    actor: Annotated[ActorTokenClaims, Depends(require_platform_super_admin)],
) -> ReaperRunResponse:
    """Queue the reaper task."""
    result = purge_expired_tombstones.delay()
    logger.info("reaper_run_queued", task_id=result.id, actor_id=str(actor.user_id))
    return ReaperRunResponse(task_id=result.id)
