"""Session-level tombstone enforcement.

Every ORM session of the project is backed by :class:`TombstoneSession`.
Listeners registered on that class implement three guarantees:

- Query filtering: every SELECT hides tombstoned rows of soft-deletable
  entities unless the caller passes the ``include_deleted`` or
  ``only_deleted`` execution option, or filters on ``is_deleted`` itself
  anywhere in the statement (sub-queries and EXISTS clauses included).
- Hard-delete blocking: ORM and textual DELETE statements against
  soft-deletable tables, and ``session.delete()`` of soft-deletable objects,
  raise :class:`HardDeleteBlockedError`.
- Write guard: tombstone columns only change through ``soft_delete()`` /
  ``restore()`` or through bulk UPDATEs carrying the
  ``tombstone_transition`` execution option.

Example:
    ```python
    # Live rows only
    await session.execute(select(User))

    # Tombstoned rows too
    await session.execute(select(User).execution_options(include_deleted=True))

    # Explicit filter wins, nothing is injected
    await session.execute(select(User).where(User.is_deleted.is_(True)))
    ```
"""

import re
from collections.abc import Iterable
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria
from sqlalchemy.sql import Select, visitors
from sqlalchemy.sql.elements import BinaryExpression, ColumnClause, TextClause, UnaryExpression

from src.domain.exceptions import HardDeleteBlockedError, SoftDeleteValidationError
from src.domain.models import ENTITY_MODELS, TOMBSTONE_FIELDS, TOMBSTONE_TRANSITION, SoftDeleteMixin
from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)

INCLUDE_DELETED = "include_deleted"
ONLY_DELETED = "only_deleted"

_TEXT_DELETE = re.compile(r"^\s*delete\s+from\s+[\"`]?(\w+)", re.IGNORECASE)


class TombstoneSession(Session):
    """Sync session class behind every ``AsyncSession`` of the project."""

    def delete(self, instance: object) -> None:
        if isinstance(instance, SoftDeleteMixin):
            raise HardDeleteBlockedError(
                type(instance).__name__, {"id": str(getattr(instance, "id", None))}
            )
        super().delete(instance)


# Table name -> root entity name of every soft-deletable table
SOFT_DELETABLE_TABLES: dict[str, str] = {
    model.__table__.name: model.__mapper__.base_mapper.class_.__name__  # type: ignore[attr-defined]
    for model in reversed(list(ENTITY_MODELS.values()))
}


def _column_name(key: Any) -> str | None:
    if isinstance(key, str):
        return key
    return getattr(key, "key", None) or getattr(key, "name", None)


def _is_tombstone_column(element: Any) -> bool:
    return isinstance(element, ColumnClause) and element.name == "is_deleted"


def filters_on_tombstone(statement: Any) -> bool:
    """Whether ``statement`` already constrains ``is_deleted`` somewhere in its tree.

    Only comparison/negation operands and bare boolean WHERE criteria count;
    ``is_deleted`` appearing in a column list is not a filter.
    """
    for element in visitors.iterate(statement):
        if isinstance(element, BinaryExpression):
            if _is_tombstone_column(element.left) or _is_tombstone_column(element.right):
                return True
        elif isinstance(element, UnaryExpression):
            if _is_tombstone_column(element.element):
                return True
        elif isinstance(element, Select):
            if any(_is_tombstone_column(crit) for crit in element._where_criteria):
                return True
    return False


def _statement_table(statement: Any) -> str | None:
    table = getattr(statement, "table", None)
    if table is not None:
        return getattr(table, "name", None)
    if isinstance(statement, TextClause):
        match = _TEXT_DELETE.match(statement.text)
        if match:
            return match.group(1)
    return None


def _updated_columns(state: ORMExecuteState) -> set[str]:
    statement = state.statement
    names: set[str] = set()
    values = getattr(statement, "_values", None) or {}
    names.update(filter(None, (_column_name(key) for key in values)))
    ordered = getattr(statement, "_ordered_values", None) or ()
    names.update(filter(None, (_column_name(key) for key, _ in ordered)))
    params = state.parameters
    if isinstance(params, dict):
        names.update(params)
    elif isinstance(params, Iterable):
        for row in params:
            if isinstance(row, dict):
                names.update(row)
    return names


def _apply_tombstone_filter(state: ORMExecuteState) -> None:
    if state.is_column_load or state.is_relationship_load:
        return
    options = state.execution_options
    if options.get(INCLUDE_DELETED, False):
        return
    if filters_on_tombstone(state.statement):
        return
    if options.get(ONLY_DELETED, False):
        criteria = with_loader_criteria(
            SoftDeleteMixin,
            lambda cls: cls.is_deleted == True,  # noqa: E712
            include_aliases=True,
        )
    else:
        criteria = with_loader_criteria(
            SoftDeleteMixin,
            lambda cls: cls.is_deleted == False,  # noqa: E712
            include_aliases=True,
        )
    state.statement = state.statement.options(criteria)


def _block_hard_delete(state: ORMExecuteState) -> None:
    table = _statement_table(state.statement)
    entity = SOFT_DELETABLE_TABLES.get(table or "")
    if entity is not None:
        logger.warning("hard_delete_blocked", entity_type=entity, table=table)
        raise HardDeleteBlockedError(entity, {"table": table})


def _guard_bulk_update(state: ORMExecuteState) -> None:
    if state.execution_options.get(TOMBSTONE_TRANSITION, False):
        return
    table = _statement_table(state.statement)
    if table not in SOFT_DELETABLE_TABLES:
        return
    touched = _updated_columns(state) & TOMBSTONE_FIELDS
    if touched:
        raise SoftDeleteValidationError(
            "Tombstone fields can only be changed by soft delete or restore",
            {"table": table, "fields": sorted(touched)},
        )


def _on_orm_execute(state: ORMExecuteState) -> None:
    if state.is_select:
        _apply_tombstone_filter(state)
    elif state.is_delete:
        _block_hard_delete(state)
    elif state.is_update:
        _guard_bulk_update(state)
    elif isinstance(state.statement, TextClause):
        _block_hard_delete(state)


def _before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    for obj in session.deleted:
        if isinstance(obj, SoftDeleteMixin):
            raise HardDeleteBlockedError(
                type(obj).__name__, {"id": str(getattr(obj, "id", None))}
            )

    for obj in session.new:
        if not isinstance(obj, SoftDeleteMixin):
            continue
        sanctioned = inspect(obj).info.pop(TOMBSTONE_TRANSITION, False)
        if (obj.is_deleted or obj.deleted_at is not None) and not sanctioned:
            raise SoftDeleteValidationError(
                "New records cannot be created tombstoned",
                {"entity_type": type(obj).__name__},
            )
        if bool(obj.is_deleted) != (obj.deleted_at is not None):
            raise SoftDeleteValidationError(
                "is_deleted must be set exactly when deleted_at is set",
                {"entity_type": type(obj).__name__},
            )

    for obj in session.dirty:
        if not isinstance(obj, SoftDeleteMixin):
            continue
        state = inspect(obj)
        changed = sorted(
            name for name in TOMBSTONE_FIELDS if state.attrs[name].history.has_changes()
        )
        sanctioned = state.info.pop(TOMBSTONE_TRANSITION, False)
        if changed and not sanctioned:
            raise SoftDeleteValidationError(
                "Tombstone fields can only be changed by soft delete or restore",
                {"entity_type": type(obj).__name__, "id": str(state.identity), "fields": changed},
            )


event.listen(TombstoneSession, "do_orm_execute", _on_orm_execute)
event.listen(TombstoneSession, "before_flush", _before_flush)
