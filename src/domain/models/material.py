"""Material catalogue entry referenced by line items."""

from typing import Any
from uuid import UUID

from sqlalchemy import Float, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.constants import RetentionDays
from src.domain.models.base import BaseEntity, SoftDeleteMixin, tombstone_indexes
from src.domain.models.types import JSONType


class Material(SoftDeleteMixin, BaseEntity):
    """Material of a department, priced per unit.

    Attributes:
        name: Material name
        unit: Unit of measure (pcs, kg, m, ...)
        price: Current unit price, the default for new line items
        category: Free-form category
        added_by_id: User who added the material
        deletion_references: Line items removed when the material was deleted,
            as ``{model, id, quantity, unit_price, total_cost}`` records used to
            re-insert them on restore
    """

    __tablename__ = "materials"
    __retention_days__ = RetentionDays.MATERIALS

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="pcs")
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    organization_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    added_by_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    deletion_references: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONType,
        nullable=True,
        default=None,
    )

    __table_args__ = (*tombstone_indexes("materials", "organization_id", "department_id"),)
