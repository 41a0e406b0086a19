"""Material usage line items embedded in routine tasks and task activities."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import Float
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.models.types import JSONType


def make_line_item(material_id: UUID, quantity: float, unit_price: float) -> dict[str, Any]:
    """Build a line item with its computed total cost."""
    return {
        "material": str(material_id),
        "quantity": float(quantity),
        "unit_price": float(unit_price),
        "total_cost": round(float(quantity) * float(unit_price), 2),
    }


class MaterialUsageMixin:
    """Adds a materials line-item list and its derived total cost.

    Each line item is ``{material, quantity, unit_price, total_cost}`` where
    ``material`` is the string form of a Material id.
    """

    materials: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONType,
        nullable=True,
        default=list,
        comment="Material line items: material, quantity, unit_price, total_cost",
    )
    total_material_cost: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        default=0.0,
        comment="Sum of line item total costs",
    )

    def material_ids(self) -> list[UUID]:
        """Material ids referenced by the line items, in order."""
        return [UUID(item["material"]) for item in self.materials or []]

    def uses_material(self, material_id: UUID) -> bool:
        return material_id in self.material_ids()

    def set_materials(self, items: Iterable[dict[str, Any]]) -> None:
        """Replace the line items and recompute ``total_material_cost``."""
        new_items = [dict(item) for item in items]
        self.materials = new_items
        self.total_material_cost = round(sum(item["total_cost"] for item in new_items), 2)

    def remove_material(self, material_id: UUID) -> list[dict[str, Any]]:
        """Remove every line item for ``material_id``.

        Returns:
            The removed line items
        """
        key = str(material_id)
        removed = [item for item in self.materials or [] if item["material"] == key]
        if removed:
            self.set_materials(item for item in self.materials or [] if item["material"] != key)
        return removed
