"""Material and vendor lifecycle.

A material delete unlinks it from the live routine tasks and activities
using it and remembers the removed line items so a restore can put them
back. Inside an organization or department walk the holders tombstoned by
earlier steps keep their line items; only holders that stay live (other
departments) are unlinked.

A targeted vendor delete needs a replacement vendor when live project
tasks still reference it. Inside a walk vendors are tombstoned in bulk.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from src.app.cascade.base import CascadeOrchestrator, require_transaction
from src.domain.constants import ReferenceLimits
from src.domain.exceptions import (
    AlreadyDeletedError,
    BusinessRuleViolationError,
    NotDeletedError,
    ReferentialIntegrityError,
)
from src.domain.models import ENTITY_MODELS, Material, Vendor
from src.domain.models.base import utcnow
from src.domain.models.line_items import make_line_item
from src.infrastructure.logging.config import get_logger
from src.infrastructure.persistence.unit_of_work import IUnitOfWork


logger = get_logger(__name__)


class MaterialCascade(CascadeOrchestrator[Material]):
    model = Material

    async def soft_delete_by_id_with_cascade(
        self,
        id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> Material:
        return await self.soft_delete_with_unlink(id, tx=tx, actor_id=actor_id)

    async def restore_by_id_with_cascade(
        self,
        id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> Material:
        return await self.restore_with_relink(id, tx=tx, actor_id=actor_id)

    async def delete_children(
        self, entity: Material, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        references = await self._unlink(entity, tx)
        if references:
            entity.deletion_references = references

    async def restore_children(
        self,
        entity: Material,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        await self._relink(entity, tx)

    async def soft_delete_with_unlink(
        self,
        material_id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> Material:
        """Remove the material's line items everywhere, then tombstone it.

        Every removed line item is recorded in ``deletion_references`` as
        ``{model, id, quantity, unit_price, total_cost}``.

        Raises:
            TransactionRequiredError: Without an active transaction
            EntityNotFoundError: If no material has this id
            AlreadyDeletedError: If the material is already tombstoned
        """
        tx = require_transaction(tx, "Material delete with unlink")
        material = await tx.materials.get_or_raise(material_id, include_deleted=True)
        if material.is_deleted:
            raise AlreadyDeletedError(self.entity_type, material_id)

        references = await self._unlink(material, tx)
        material.deletion_references = references
        material.soft_delete(actor_id=actor_id, at=utcnow())
        await tx.flush()
        logger.info(
            "material_soft_deleted_with_unlink",
            material_id=str(material_id),
            unlinked=len(references),
        )
        return material

    async def restore_with_relink(
        self,
        material_id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
    ) -> Material:
        """Restore the material and re-insert its recorded line items.

        Line items go back only into targets that are still live and do not
        already hold the material again. ``deletion_references`` is cleared.

        Raises:
            TransactionRequiredError: Without an active transaction
            EntityNotFoundError: If no material has this id
            NotDeletedError: If the material is not tombstoned
            ReferentialIntegrityError: If its organization or department is tombstoned
        """
        tx = require_transaction(tx, "Material restore with relink")
        material = await tx.materials.get_or_raise(material_id, include_deleted=True)
        if not material.is_deleted:
            raise NotDeletedError(self.entity_type, material_id)
        dead = await self.dead_parent(material, tx)
        if dead is not None:
            field, model, ref_id = dead
            raise ReferentialIntegrityError(
                field,
                f"Cannot restore Material {material_id}: {model.entity_type()} {ref_id} is deleted",
            )

        material.restore(actor_id=actor_id, at=utcnow())
        await tx.flush()
        relinked = await self._relink(material, tx)
        logger.info(
            "material_restored_with_relink", material_id=str(material_id), relinked=relinked
        )
        return material

    async def _unlink(self, material: Material, tx: IUnitOfWork) -> list[dict[str, Any]]:
        """Pull the material's line items out of every live holder.

        Returns:
            One ``{model, id, quantity, unit_price, total_cost}`` record per removed item
        """
        references: list[dict[str, Any]] = []
        repositories: tuple[Any, ...] = (tx.tasks, tx.activities)
        for repository in repositories:
            after: UUID | None = None
            while True:
                holders: list[Any] = await repository.find_using_material(
                    material.id, material.organization_id, after=after, limit=self.batch_size
                )
                if not holders:
                    break
                for holder in holders:
                    for item in holder.remove_material(material.id):
                        references.append(
                            {
                                "model": holder.entity_type(),
                                "id": str(holder.id),
                                "quantity": item["quantity"],
                                "unit_price": item["unit_price"],
                                "total_cost": item["total_cost"],
                            }
                        )
                    await repository.update(holder, validate=False)
                after = holders[-1].id
        return references

    async def _relink(self, material: Material, tx: IUnitOfWork) -> int:
        """Re-insert recorded line items into live holders, then clear the record.

        Returns:
            Number of holders relinked
        """
        relinked = 0
        for ref in material.deletion_references or []:
            model = ENTITY_MODELS[ref["model"]]
            repository = tx.repository_for(model)
            holder: Any = await repository.get_by_id(UUID(ref["id"]))
            if holder is None or holder.uses_material(material.id):
                continue
            items = list(holder.materials or [])
            if len(items) >= ReferenceLimits.MAX_MATERIALS:
                logger.warning(
                    "material_relink_skipped",
                    material_id=str(material.id),
                    target_id=ref["id"],
                    reason="line item limit reached",
                )
                continue
            items.append(make_line_item(material.id, ref["quantity"], ref["unit_price"]))
            holder.set_materials(items)
            await repository.update(holder, validate=False)
            relinked += 1

        material.deletion_references = None
        await tx.flush()
        return relinked


class VendorCascade(CascadeOrchestrator[Vendor]):
    model = Vendor
    bulk_children = True

    async def soft_delete_by_id_with_cascade(
        self,
        id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
        reassign_to: UUID | None = None,
    ) -> Vendor:
        return await self.soft_delete_with_reassign(
            id, tx=tx, actor_id=actor_id, reassign_to=reassign_to
        )

    async def soft_delete_with_reassign(
        self,
        vendor_id: UUID,
        *,
        tx: IUnitOfWork | None,
        actor_id: UUID | None = None,
        reassign_to: UUID | None = None,
    ) -> Vendor:
        """Tombstone a vendor, moving its live project tasks to ``reassign_to``.

        Raises:
            TransactionRequiredError: Without an active transaction
            EntityNotFoundError: If no vendor has this id
            AlreadyDeletedError: If the vendor is already tombstoned
            BusinessRuleViolationError: If live project tasks reference the
                vendor and no replacement is given
            ReferentialIntegrityError: If the replacement is the vendor itself,
                is not live or belongs to another organization
        """
        tx = require_transaction(tx, "Vendor delete with reassign")
        vendor = await tx.vendors.get_or_raise(vendor_id, include_deleted=True)
        if vendor.is_deleted:
            raise AlreadyDeletedError(self.entity_type, vendor_id)

        referencing = await tx.tasks.find_referencing_vendor(vendor_id)
        if referencing and reassign_to is None:
            raise BusinessRuleViolationError(
                f"Vendor is referenced by {len(referencing)} project task(s); "
                "a replacement vendor is required",
                {"vendor_id": str(vendor_id), "task_ids": [str(t.id) for t in referencing]},
            )

        if reassign_to is not None:
            await self._check_replacement(vendor, reassign_to, tx)
            moved = await tx.tasks.reassign_vendor(vendor_id, reassign_to)
            logger.info(
                "vendor_tasks_reassigned",
                vendor_id=str(vendor_id),
                reassign_to=str(reassign_to),
                tasks=moved,
            )

        vendor.soft_delete(actor_id=actor_id, at=utcnow())
        await tx.flush()
        return vendor

    async def _check_replacement(self, vendor: Vendor, reassign_to: UUID, tx: IUnitOfWork) -> None:
        if reassign_to == vendor.id:
            raise ReferentialIntegrityError("reassign_to", "A vendor cannot replace itself")
        replacement = await tx.vendors.get_by_id(reassign_to)
        if replacement is None:
            raise ReferentialIntegrityError(
                "reassign_to", f"Vendor {reassign_to} does not exist or is deleted"
            )
        if replacement.organization_id != vendor.organization_id:
            raise ReferentialIntegrityError(
                "reassign_to", f"Vendor {reassign_to} belongs to another organization"
            )
