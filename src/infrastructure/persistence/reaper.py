"""Physical purge of expired tombstones.

The reaper is the only code path that physically deletes soft-deletable
rows. It runs Core DELETE statements on a plain connection, outside the
ORM session and its hard-delete block, and only ever matches rows that
have been tombstoned for longer than their entity's retention period.

Example:
    ```python
    reaper = TombstoneReaper(engine, {"Notification": 7})
    await reaper.ensure_expiry_indexes()
    counts = await reaper.purge_expired()
    ```
"""

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import Connection, delete, inspect, true
from sqlalchemy.ext.asyncio import AsyncEngine

from src.domain.models import (
    Attachment,
    BaseTask,
    Department,
    Material,
    Notification,
    TaskActivity,
    TaskComment,
    User,
    Vendor,
)
from src.domain.models.base import expiry_index_name, utcnow
from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)

# Leaf types first; organizations are never purged
PURGE_ORDER: tuple[Any, ...] = (
    Notification,
    Attachment,
    TaskComment,
    TaskActivity,
    BaseTask,
    Material,
    Vendor,
    User,
    Department,
)


class TombstoneReaper:
    """Purges tombstoned rows past their retention period.

    Args:
        engine: Async engine to purge through
        retention_overrides: Retention days by entity type name, replacing
            the entity's declared ``__retention_days__``
    """

    def __init__(self, engine: AsyncEngine, retention_overrides: Mapping[str, int] | None = None):
        self._engine = engine
        self._overrides = dict(retention_overrides or {})

    def retention_days(self, model: Any) -> int | None:
        return self._overrides.get(model.entity_type(), model.__retention_days__)

    async def ensure_expiry_indexes(self) -> list[str]:
        """Create the partial ``deleted_at`` indexes the purge relies on, if missing.

        Returns:
            Names of the indexes created
        """
        async with self._engine.begin() as conn:
            created: list[str] = await conn.run_sync(self._create_missing_indexes)
        if created:
            logger.info("tombstone_expiry_indexes_created", indexes=created)
        return created

    @staticmethod
    def _create_missing_indexes(conn: Connection) -> list[str]:
        inspector = inspect(conn)
        created = []
        for model in PURGE_ORDER:
            table = model.__table__
            if not inspector.has_table(table.name):
                continue
            existing = {index["name"] for index in inspector.get_indexes(table.name)}
            for index in table.indexes:
                if index.name == expiry_index_name(table.name) and index.name not in existing:
                    index.create(conn)
                    created.append(index.name)
        return created

    async def purge_expired(self, now: datetime | None = None) -> dict[str, int]:
        """Physically delete tombstones older than their retention period.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Rows purged per entity type
        """
        now = now or utcnow()
        counts: dict[str, int] = {}
        async with self._engine.begin() as conn:
            for model in PURGE_ORDER:
                days = self.retention_days(model)
                if days is None:
                    continue
                table = model.__table__
                statement = delete(table).where(
                    table.c.is_deleted == true(),
                    table.c.deleted_at < now - timedelta(days=days),
                )
                result = await conn.execute(statement)
                counts[model.entity_type()] = int(result.rowcount)

        logger.info("tombstones_purged", counts=counts, total=sum(counts.values()))
        return counts
