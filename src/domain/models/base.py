"""Base entity classes for domain models with tombstone support.

This module defines the foundational entity classes used across all domain
models: time-ordered UUID primary keys, timestamps, and the tombstone field
set that turns physical deletion into a reversible state transition.
"""

from datetime import UTC, datetime
from typing import Any, ClassVar
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, Uuid, false, inspect, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid_extension import uuid7

from src.domain.exceptions import AlreadyDeletedError, NotDeletedError
from src.domain.models.types import TZDateTime


# Instance-state key marking a sanctioned tombstone transition
TOMBSTONE_TRANSITION = "tombstone_transition"

TOMBSTONE_FIELDS = frozenset(
    {
        "is_deleted",
        "deleted_at",
        "deleted_by_id",
        "restored_at",
        "restored_by_id",
        "restore_count",
    }
)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy ORM models."""


class BaseEntity(Base):
    """Base entity with time-ordered UUIDs and timestamps.

    Note:
        This is an abstract class. Inherit from it to create concrete entity models.
    """

    __abstract__ = True

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
        comment="Primary key using UUIDv7 for time-ordered identifiers",
    )
    created_at: Mapped[datetime] = mapped_column(
        TZDateTime,
        default=utcnow,
        nullable=False,
        comment="Timestamp of entity creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp of last modification",
    )

    @classmethod
    def entity_type(cls) -> str:
        """Name used for this entity in polymorphic tags, events and errors."""
        return cls.__name__

    def __repr__(self) -> str:
        """Generate string representation showing entity type and ID."""
        return f"<{self.__class__.__name__}(id={self.id})>"


class SoftDeleteMixin:
    """Tombstone field set for soft-deletable entities.

    Adds the six tombstone columns and the two sanctioned state transitions.
    The write guard installed on the project session rejects any change to
    these columns that did not go through :meth:`soft_delete` or
    :meth:`restore` (or the repository bulk primitives).

    State machine::

        ACTIVE --soft_delete--> TOMBSTONED --restore--> ACTIVE --> ...

    Invariants:
        - ``is_deleted`` is True exactly when ``deleted_at`` is set.
        - A restore clears ``deleted_at``/``deleted_by_id`` and increments
          ``restore_count``, which never decreases.

    Attributes:
        __retention_days__: Days a tombstoned row is kept before the reaper
            purges it. ``None`` means never purge.
    """

    __retention_days__: ClassVar[int | None] = None

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        comment="Tombstone flag",
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
        default=None,
        comment="Set exactly when is_deleted becomes true",
    )
    deleted_by_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        default=None,
        comment="User who performed the soft delete",
    )
    restored_at: Mapped[datetime | None] = mapped_column(
        TZDateTime,
        nullable=True,
        default=None,
        comment="Timestamp of the most recent restore",
    )
    restored_by_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        default=None,
        comment="User who performed the most recent restore",
    )
    restore_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default=text("0"),
        nullable=False,
        comment="Number of times this record has been restored",
    )

    def soft_delete(self, actor_id: UUID | None = None, at: datetime | None = None) -> None:
        """Tombstone this entity.

        Args:
            actor_id: User performing the deletion
            at: Deletion timestamp (defaults to now); cascades pass one shared value

        Raises:
            AlreadyDeletedError: If the entity is already tombstoned
        """
        if self.is_deleted:
            raise AlreadyDeletedError(type(self).__name__, getattr(self, "id", None))
        _mark_transition(self)
        self.is_deleted = True
        self.deleted_at = at or utcnow()
        self.deleted_by_id = actor_id

    def restore(self, actor_id: UUID | None = None, at: datetime | None = None) -> None:
        """Bring a tombstoned entity back to the active state.

        Args:
            actor_id: User performing the restore
            at: Restore timestamp (defaults to now)

        Raises:
            NotDeletedError: If the entity is not tombstoned
        """
        if not self.is_deleted:
            raise NotDeletedError(type(self).__name__, getattr(self, "id", None))
        _mark_transition(self)
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by_id = None
        self.restored_at = at or utcnow()
        self.restored_by_id = actor_id
        self.restore_count = (self.restore_count or 0) + 1

    @property
    def tombstone_state(self) -> dict[str, Any]:
        """Snapshot of the tombstone fields, used for restore audits."""
        return {name: getattr(self, name) for name in sorted(TOMBSTONE_FIELDS)}


def _mark_transition(entity: object) -> None:
    inspect(entity).info[TOMBSTONE_TRANSITION] = True


def tombstone_indexes(table: str, *scope: str, retained: bool = True) -> tuple[Index, ...]:
    """Build the persisted index layout for a soft-deletable table.

    - Hot-path index: tenant scope columns + ``is_deleted``, partial on live rows
    - Expiry index: ``deleted_at`` partial on tombstoned rows, read by the reaper

    Args:
        table: Table name used to derive index names
        scope: Tenant scope columns leading the hot-path index
        retained: False for tables that are never purged (no expiry index)

    Returns:
        Index definitions for ``__table_args__``
    """
    indexes = [
        Index(
            f"ix_{table}_live_scope",
            *scope,
            "is_deleted",
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        )
    ]
    if retained:
        indexes.append(
            Index(
                expiry_index_name(table),
                "deleted_at",
                postgresql_where=text("is_deleted = true"),
                sqlite_where=text("is_deleted = 1"),
            )
        )
    return tuple(indexes)


def expiry_index_name(table: str) -> str:
    """Name of the reaper's partial ``deleted_at`` index for ``table``."""
    return f"ix_{table}_tombstone_expiry"
