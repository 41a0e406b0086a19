"""Organization and department cascades.

Organization delete order: departments -> users -> tasks -> activities ->
comments -> attachments -> materials -> notifications -> vendors ->
organization. The platform organization can never be deleted.

Department delete order: users -> tasks -> activities -> comments ->
attachments -> materials -> notifications -> department.

Each step tombstones what is still live after the previous ones, so the
later steps only pick up records left behind by earlier partial deletes.
Restores walk the same order after restoring the parent itself.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from src.app.cascade.base import CascadeOrchestrator
from src.domain.exceptions import ProtectedEntityError
from src.domain.models import (
    Attachment,
    BaseTask,
    Department,
    Material,
    Notification,
    Organization,
    TaskActivity,
    TaskComment,
    User,
    Vendor,
)
from src.infrastructure.persistence.unit_of_work import IUnitOfWork


class OrganizationCascade(CascadeOrchestrator[Organization]):
    model = Organization

    # Organization-owned types, in delete order
    children: tuple[tuple[str, Any], ...] = (
        ("Department", Department),
        ("User", User),
        ("BaseTask", BaseTask),
        ("TaskActivity", TaskActivity),
        ("TaskComment", TaskComment),
        ("Attachment", Attachment),
        ("Material", Material),
        ("Notification", Notification),
        ("Vendor", Vendor),
    )

    async def guard_delete(self, entity: Organization, tx: IUnitOfWork) -> None:
        if entity.is_platform_org:
            raise ProtectedEntityError(
                "The platform organization cannot be deleted",
                {"organization_id": str(entity.id)},
            )

    async def delete_children(
        self, entity: Organization, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        for name, model in self.children:
            await self.registry.get(name)._delete_matching(
                model.organization_id == entity.id, tx=tx, actor_id=actor_id, at=at
            )

    async def restore_children(
        self,
        entity: Organization,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        for name, model in self.children:
            await self.registry.get(name)._restore_matching(
                model.organization_id == entity.id,
                tx=tx,
                actor_id=actor_id,
                at=at,
                cutoff=cutoff,
            )


class DepartmentCascade(CascadeOrchestrator[Department]):
    model = Department

    children: tuple[tuple[str, Any], ...] = (
        ("User", User),
        ("BaseTask", BaseTask),
        ("TaskActivity", TaskActivity),
        ("TaskComment", TaskComment),
        ("Attachment", Attachment),
        ("Material", Material),
        ("Notification", Notification),
    )

    async def delete_children(
        self, entity: Department, *, tx: IUnitOfWork, actor_id: UUID | None, at: datetime
    ) -> None:
        for name, model in self.children:
            await self.registry.get(name)._delete_matching(
                model.department_id == entity.id, tx=tx, actor_id=actor_id, at=at
            )

    async def restore_children(
        self,
        entity: Department,
        *,
        tx: IUnitOfWork,
        actor_id: UUID | None,
        at: datetime,
        cutoff: datetime,
    ) -> None:
        for name, model in self.children:
            await self.registry.get(name)._restore_matching(
                model.department_id == entity.id,
                tx=tx,
                actor_id=actor_id,
                at=at,
                cutoff=cutoff,
            )
