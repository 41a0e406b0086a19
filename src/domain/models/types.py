"""Portable column types shared by the domain models.

PostgreSQL is the production database; SQLite backs the test suite. These
types keep timestamps timezone-aware and list references JSON-encoded on
both dialects.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine


JSONType = JSON().with_variant(JSONB(), "postgresql")


class TZDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamp stored as UTC.

    SQLite has no timezone support, so values are normalized to naive UTC on
    the way in and re-tagged with UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if dialect.name == "sqlite":
            return value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class UUIDList(TypeDecorator[list[UUID]]):
    """List of UUID references stored as a JSON array of strings.

    Note:
        Mutating the list in place is not tracked; always assign a new list.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: list[UUID] | None, dialect: Dialect) -> list[str]:
        return [str(item) for item in value or []]

    def process_result_value(self, value: list[str] | None, dialect: Dialect) -> list[UUID]:
        return [UUID(str(item)) for item in value or []]
