"""Reference lookups shared by the pre-write validators.

Every lookup goes through the tombstone-aware session, so a tombstoned
record is indistinguishable from a missing one: both fail the check.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import false, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.constants import HOD_ROLES, ReferenceLimits
from src.domain.exceptions import ReferentialIntegrityError, ValidationError
from src.domain.models import (
    ENTITY_MODELS,
    Attachment,
    Department,
    Material,
    Organization,
    TaskComment,
    User,
    Vendor,
)
from src.domain.models.line_items import make_line_item


class ReferenceChecker:
    """Resolves foreign-key-shaped fields against live records of one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _fetch(self, model: Any, *criteria: Any) -> list[Any]:
        query = select(model).where(*criteria).execution_options(populate_existing=True)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def _fetch_one(self, model: Any, id: UUID) -> Any | None:
        rows = await self._fetch(model, model.id == id)
        return rows[0] if rows else None

    async def tenant(self, organization_id: UUID, department_id: UUID | None = None) -> None:
        """Check the organization is live and the department is a live member of it."""
        organization = await self._fetch_one(Organization, organization_id)
        if organization is None:
            raise ReferentialIntegrityError(
                "organization",
                f"Organization {organization_id} does not exist or is deleted",
            )
        if department_id is None:
            return
        department = await self._fetch_one(Department, department_id)
        if department is None:
            raise ReferentialIntegrityError(
                "department",
                f"Department {department_id} does not exist or is deleted",
            )
        if department.organization_id != organization_id:
            raise ReferentialIntegrityError(
                "department",
                f"Department {department_id} does not belong to organization {organization_id}",
            )

    async def actor(
        self,
        field: str,
        user_id: UUID | None,
        organization_id: UUID,
        department_id: UUID | None = None,
    ) -> None:
        """Check an actor reference (created_by, added_by, uploaded_by)."""
        if user_id is None:
            return
        await self.users(field, [user_id], organization_id, limit=1, department_id=department_id)

    async def users(
        self,
        field: str,
        user_ids: Sequence[UUID] | None,
        organization_id: UUID,
        limit: int,
        department_id: UUID | None = None,
        hod_only: bool = False,
    ) -> None:
        """Check a list of user references.

        Raises:
            ReferentialIntegrityError: On duplicates, too many entries, users
                that are missing, tombstoned, in another tenant or (for
                ``hod_only``) not holding a HOD role
        """
        ids = distinct_ids(field, user_ids, limit)
        if not ids:
            return
        found = {user.id: user for user in await self._fetch(User, User.id.in_(ids))}
        for user_id in ids:
            user = found.get(user_id)
            if user is None:
                raise ReferentialIntegrityError(
                    field, f"User {user_id} does not exist or is deleted", {"id": str(user_id)}
                )
            if user.organization_id != organization_id:
                raise ReferentialIntegrityError(
                    field, f"User {user_id} belongs to another organization", {"id": str(user_id)}
                )
            if department_id is not None and user.department_id != department_id:
                raise ReferentialIntegrityError(
                    field, f"User {user_id} belongs to another department", {"id": str(user_id)}
                )
            if hod_only and user.role not in HOD_ROLES:
                raise ReferentialIntegrityError(
                    field, f"User {user_id} is not a head of department", {"id": str(user_id)}
                )

    async def parent(
        self,
        field: str,
        parent_id: UUID | None,
        parent_model: str | None,
        allowed: Sequence[str],
        organization_id: UUID,
        department_id: UUID | None = None,
    ) -> Any:
        """Resolve a polymorphic reference to a live record of the tagged type.

        Returns:
            The referenced record
        """
        if parent_id is None or parent_model is None:
            raise ReferentialIntegrityError(field, f"{field} is required")
        if parent_model not in allowed:
            raise ReferentialIntegrityError(
                field,
                f"{parent_model} is not a valid {field} type",
                {"allowed": list(allowed)},
            )
        model = ENTITY_MODELS[parent_model]
        record = await self._fetch_one(model, parent_id)
        if record is None:
            raise ReferentialIntegrityError(
                field, f"{parent_model} {parent_id} does not exist or is deleted"
            )
        record_org = record.id if isinstance(record, Organization) else record.organization_id
        if record_org != organization_id:
            raise ReferentialIntegrityError(
                field, f"{parent_model} {parent_id} belongs to another organization"
            )
        record_dept = getattr(record, "department_id", None)
        if department_id is not None and record_dept is not None and record_dept != department_id:
            raise ReferentialIntegrityError(
                field, f"{parent_model} {parent_id} belongs to another department"
            )
        return record

    async def attachments(
        self,
        attachment_ids: Sequence[UUID] | None,
        owner_id: UUID,
        organization_id: UUID,
    ) -> None:
        """Check attachment references point to live attachments of ``owner_id``."""
        ids = distinct_ids("attachments", attachment_ids, ReferenceLimits.MAX_ATTACHMENTS)
        if not ids:
            return
        found = {a.id: a for a in await self._fetch(Attachment, Attachment.id.in_(ids))}
        for attachment_id in ids:
            attachment = found.get(attachment_id)
            if attachment is None:
                raise ReferentialIntegrityError(
                    "attachments",
                    f"Attachment {attachment_id} does not exist or is deleted",
                    {"id": str(attachment_id)},
                )
            if attachment.organization_id != organization_id or attachment.parent_id != owner_id:
                raise ReferentialIntegrityError(
                    "attachments",
                    f"Attachment {attachment_id} belongs to another record",
                    {"id": str(attachment_id)},
                )

    async def line_items(
        self,
        items: Sequence[dict[str, Any]] | None,
        organization_id: UUID,
    ) -> list[dict[str, Any]]:
        """Validate material line items and return them normalized.

        ``unit_price`` defaults to the material's current price and
        ``total_cost`` is always recomputed.
        """
        items = list(items or [])
        if len(items) > ReferenceLimits.MAX_MATERIALS:
            raise ReferentialIntegrityError(
                "materials",
                f"At most {ReferenceLimits.MAX_MATERIALS} materials are allowed",
            )
        ids = [UUID(str(item.get("material"))) for item in items]
        if len(set(ids)) != len(ids):
            raise ReferentialIntegrityError("materials", "Duplicate materials are not allowed")
        if not ids:
            return []
        found = {m.id: m for m in await self._fetch(Material, Material.id.in_(ids))}
        normalized = []
        for material_id, item in zip(ids, items, strict=True):
            material = found.get(material_id)
            if material is None or material.organization_id != organization_id:
                raise ReferentialIntegrityError(
                    "materials",
                    f"Material {material_id} does not exist, is deleted "
                    "or belongs to another organization",
                    {"id": str(material_id)},
                )
            quantity = float(item.get("quantity") or 0)
            if quantity <= 0:
                raise ValidationError(
                    f"Quantity for material {material_id} must be positive",
                    {"field": "materials", "id": str(material_id)},
                )
            unit_price = item.get("unit_price")
            if unit_price is None:
                unit_price = material.price
            normalized.append(make_line_item(material_id, quantity, unit_price))
        return normalized

    async def vendor(self, vendor_id: UUID | None, organization_id: UUID) -> None:
        if vendor_id is None:
            return
        vendor = await self._fetch_one(Vendor, vendor_id)
        if vendor is None or vendor.organization_id != organization_id:
            raise ReferentialIntegrityError(
                "vendor",
                f"Vendor {vendor_id} does not exist, is deleted "
                "or belongs to another organization",
            )

    async def comment_ancestors(self, parent_id: UUID) -> list[tuple[UUID, int]]:
        """Walk a comment thread upwards from ``parent_id`` in one recursive query.

        Returns:
            ``(comment_id, depth)`` pairs, depth 1 being ``parent_id`` itself.
            The walk stops at the first non-comment parent, at a tombstoned
            comment, or one level beyond the maximum thread depth.
        """
        comments = TaskComment.__table__
        anchor = select(
            comments.c.id,
            comments.c.parent_id,
            comments.c.parent_model,
            literal(1).label("depth"),
        ).where(comments.c.id == parent_id, comments.c.is_deleted == false())
        thread = anchor.cte("comment_thread", recursive=True)
        step = (
            select(
                comments.c.id,
                comments.c.parent_id,
                comments.c.parent_model,
                (thread.c.depth + 1).label("depth"),
            )
            .join(thread, comments.c.id == thread.c.parent_id)
            .where(
                thread.c.parent_model == TaskComment.entity_type(),
                comments.c.is_deleted == false(),
                thread.c.depth <= ReferenceLimits.MAX_COMMENT_DEPTH,
            )
        )
        thread = thread.union_all(step)
        result = await self._session.execute(select(thread.c.id, thread.c.depth))
        return [(row.id, row.depth) for row in result]


def distinct_ids(field: str, ids: Sequence[UUID] | None, limit: int) -> list[UUID]:
    """Check a reference list for duplicates and cardinality."""
    values = list(ids or [])
    if len(values) > limit:
        raise ReferentialIntegrityError(
            field, f"At most {limit} {field} are allowed", {"limit": limit}
        )
    if len(set(values)) != len(values):
        raise ReferentialIntegrityError(field, f"Duplicate {field} are not allowed")
    return values
