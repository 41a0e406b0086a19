"""Scheduled tombstone purge."""

import asyncio
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from src.infrastructure.celery_app import celery_app
from src.infrastructure.config import Settings, get_settings
from src.infrastructure.constants import ReaperDefaults
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.database import Database
from src.infrastructure.persistence.reaper import TombstoneReaper


logger = get_logger(__name__)


async def run_reaper(settings: Settings) -> dict[str, int]:
    """Ensure the expiry indexes exist, then purge expired tombstones."""
    database = Database(settings)
    try:
        reaper = TombstoneReaper(database.get_engine(), settings.retention_days_overrides)
        await reaper.ensure_expiry_indexes()
        return await reaper.purge_expired()
    finally:
        await database.close()


@celery_app.task(
    bind=True,
    name=ReaperDefaults.TASK_NAME,
    max_retries=3,
    default_retry_delay=60,
)
def purge_expired_tombstones(self: Any) -> dict[str, int]:
    """Purge tombstones older than their retention period.

    Returns:
        Rows purged per entity type
    """
    try:
        counts = asyncio.run(run_reaper(get_settings()))
    except SQLAlchemyError as exc:
        logger.error("tombstone_purge_failed", error=str(exc), retries=self.request.retries)
        raise self.retry(exc=exc) from exc
    logger.info("tombstone_purge_completed", total=sum(counts.values()))
    return counts
