"""Integration tests for the user cascade.

Test Organization:
- TestUserCascadeGuards: Last SuperAdmin and last head of department
- TestUserCascadeDelete: Authored records and task unlinking
- TestUserCascadeRestore: Restore of authored records
"""

import pytest

from src.app.cascade import CascadeRegistry
from src.domain.constants import UserRole
from src.domain.exceptions import BusinessRuleViolationError, ReferentialIntegrityError
from src.domain.models import User
from tests.factories import (
    Tenant,
    UowFactory,
    assigned_task_factory,
    attachment_factory,
    comment_factory,
    department_factory,
    notification_factory,
    persist,
    user_factory,
)


async def _user(uow_factory: UowFactory, user: User) -> User:
    async with uow_factory() as uow:
        return await uow.users.get_or_raise(user.id, include_deleted=True)


# ============================================================================
# Guard Tests
# ============================================================================


class TestUserCascadeGuards:
    """Test the targeted-delete guards."""

    async def test_last_super_admin_cannot_be_deleted(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        """Test an organization keeps at least one SuperAdmin.

        Arrange: Tenant with a single SuperAdmin
        Act: Cascade delete the SuperAdmin
        Assert: BusinessRuleViolationError, user still live
        """
        with pytest.raises(BusinessRuleViolationError, match="last SuperAdmin"):
            async with uow_factory() as uow:
                await registry.get("User").soft_delete_by_id_with_cascade(
                    tenant.super_admin.id, tx=uow
                )

        assert (await _user(uow_factory, tenant.super_admin)).is_deleted is False

    async def test_second_super_admin_allows_delete(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        deputy = user_factory(
            tenant.organization.id, tenant.department.id, role=UserRole.SUPER_ADMIN
        )
        await persist(uow_factory, deputy)

        async with uow_factory() as uow:
            await registry.get("User").soft_delete_by_id_with_cascade(
                tenant.super_admin.id, tx=uow
            )

        assert (await _user(uow_factory, tenant.super_admin)).is_deleted is True

    async def test_last_head_of_department_cannot_be_deleted(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        """Test a department keeps at least one Admin or SuperAdmin.

        Arrange: Second department whose only HOD is an Admin
        Act: Cascade delete that Admin
        Assert: BusinessRuleViolationError naming the department rule
        """
        # Arrange
        workshop = department_factory(tenant.organization.id)
        await persist(uow_factory, workshop)
        head = user_factory(tenant.organization.id, workshop.id, role=UserRole.ADMIN)
        await persist(uow_factory, head)

        # Act & Assert
        with pytest.raises(BusinessRuleViolationError, match="last head of department") as exc:
            async with uow_factory() as uow:
                await registry.get("User").soft_delete_by_id_with_cascade(head.id, tx=uow)

        assert exc.value.details["department_id"] == str(workshop.id)

    async def test_other_hod_allows_admin_delete(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        async with uow_factory() as uow:
            await registry.get("User").soft_delete_by_id_with_cascade(tenant.admin.id, tx=uow)

        assert (await _user(uow_factory, tenant.admin)).is_deleted is True

    async def test_plain_user_has_no_guard(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        async with uow_factory() as uow:
            await registry.get("User").soft_delete_by_id_with_cascade(tenant.member.id, tx=uow)

        assert (await _user(uow_factory, tenant.member)).is_deleted is True


# ============================================================================
# Delete Tests
# ============================================================================


class TestUserCascadeDelete:
    """Test what a user delete takes with it."""

    async def test_deletes_authored_records(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        """Test tasks, comments, uploads and notifications authored by the user go too.

        Arrange: Task by the admin; comment, upload by the member; notification by the admin
        Act: Cascade delete the admin
        Assert: The admin's task and everything on it is tombstoned
        """
        # Arrange
        task = assigned_task_factory(tenant)
        await persist(uow_factory, task)
        comment = comment_factory(tenant, task)
        attachment = attachment_factory(tenant, task)
        notification = notification_factory(tenant)
        await persist(uow_factory, comment, attachment, notification)

        # Act
        async with uow_factory() as uow:
            await registry.get("User").soft_delete_by_id_with_cascade(
                tenant.admin.id, tx=uow, actor_id=tenant.super_admin.id
            )

        # Assert
        async with uow_factory() as uow:
            records = [
                await uow.tasks.get_or_raise(task.id, include_deleted=True),
                await uow.comments.get_or_raise(comment.id, include_deleted=True),
                await uow.attachments.get_or_raise(attachment.id, include_deleted=True),
                await uow.notifications.get_or_raise(notification.id, include_deleted=True),
            ]
        assert all(record.is_deleted for record in records)
        assert {record.deleted_by_id for record in records} == {tenant.super_admin.id}

    async def test_unlinks_from_remaining_tasks(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        """Test the user leaves watcher and assignee lists of tasks that survive.

        Arrange: Task by the SuperAdmin watched by the admin and assigned to the member
        Act: Cascade delete the admin, then the member
        Assert: Task is live with both lists emptied
        """
        # Arrange
        task = assigned_task_factory(
            tenant,
            creator=tenant.super_admin,
            watchers=[tenant.admin.id, tenant.super_admin.id],
            assignees=[tenant.member.id],
        )
        await persist(uow_factory, task)

        # Act
        for user in (tenant.admin, tenant.member):
            async with uow_factory() as uow:
                await registry.get("User").soft_delete_by_id_with_cascade(user.id, tx=uow)

        # Assert
        async with uow_factory() as uow:
            stored = await uow.tasks.get_or_raise(task.id)
        assert stored.watchers == [tenant.super_admin.id]
        assert stored.assignees == []

    async def test_unlinks_across_several_pages(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        linked = [
            assigned_task_factory(
                tenant, creator=tenant.super_admin, assignees=[tenant.member.id, tenant.admin.id]
            )
            for _ in range(5)
        ]
        other = assigned_task_factory(
            tenant, creator=tenant.super_admin, assignees=[tenant.admin.id]
        )
        await persist(uow_factory, *linked, other)

        async with uow_factory() as uow:
            await registry.get("User").soft_delete_by_id_with_cascade(tenant.member.id, tx=uow)

        async with uow_factory() as uow:
            stored = [await uow.tasks.get_or_raise(task.id) for task in (*linked, other)]
        assert [task.assignees for task in stored] == [[tenant.admin.id]] * 6


# ============================================================================
# Restore Tests
# ============================================================================


class TestUserCascadeRestore:
    """Test user restores."""

    async def test_restores_authored_records_but_not_links(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        own_task = assigned_task_factory(tenant, creator=tenant.admin)
        watched = assigned_task_factory(
            tenant, creator=tenant.super_admin, watchers=[tenant.admin.id]
        )
        await persist(uow_factory, own_task, watched)
        cascade = registry.get("User")
        async with uow_factory() as uow:
            await cascade.soft_delete_by_id_with_cascade(tenant.admin.id, tx=uow)

        async with uow_factory() as uow:
            await cascade.restore_by_id_with_cascade(tenant.admin.id, tx=uow)

        async with uow_factory() as uow:
            admin = await uow.users.get_or_raise(tenant.admin.id)
            restored_task = await uow.tasks.get_or_raise(own_task.id)
            watched_task = await uow.tasks.get_or_raise(watched.id)
        assert admin.restore_count == 1
        assert restored_task.restore_count == 1
        assert watched_task.watchers == []

    async def test_restore_requires_live_department(
        self, uow_factory: UowFactory, registry: CascadeRegistry, tenant: Tenant
    ) -> None:
        async with uow_factory() as uow:
            await registry.get("Department").soft_delete_by_id_with_cascade(
                tenant.department.id, tx=uow
            )

        with pytest.raises(ReferentialIntegrityError) as exc_info:
            async with uow_factory() as uow:
                await registry.get("User").restore_by_id_with_cascade(tenant.member.id, tx=uow)

        assert exc_info.value.field == "department"
