"""Integration tests for the tombstone reaper.

Test Organization:
- TestRetention: Retention resolution and overrides
- TestPurgeExpired: Physical purge of expired tombstones
- TestExpiryIndexes: Creation of missing expiry indexes
"""

from datetime import timedelta

import pytest
from sqlalchemy import text

from src.domain.models import Material, Organization, Vendor
from src.domain.models.base import expiry_index_name, utcnow
from src.infrastructure.persistence.database import Database
from src.infrastructure.persistence.reaper import PURGE_ORDER, TombstoneReaper
from tests.factories import Tenant, UowFactory, notification_factory, persist, vendor_factory


# ============================================================================
# Retention Tests
# ============================================================================


class TestRetention:
    """Test retention_days."""

    def test_declared_retention(self, database: Database) -> None:
        reaper = TombstoneReaper(database.get_engine())

        assert reaper.retention_days(Vendor) == 90
        assert reaper.retention_days(Organization) is None

    def test_override_wins(self, database: Database) -> None:
        reaper = TombstoneReaper(database.get_engine(), {"Material": 7})

        assert reaper.retention_days(Material) == 7
        assert reaper.retention_days(Vendor) == 90

    def test_organizations_are_never_purged(self) -> None:
        assert Organization not in PURGE_ORDER


# ============================================================================
# Purge Tests
# ============================================================================


class TestPurgeExpired:
    """Test purge_expired."""

    async def test_purges_only_expired_tombstones(
        self, uow_factory: UowFactory, database: Database, tenant: Tenant
    ) -> None:
        """Test rows are purged once tombstoned longer than their retention.

        Arrange: Vendor tombstoned 100 days ago, vendor tombstoned 10 days ago, live vendor,
            notification tombstoned 40 days ago
        Act: purge_expired
        Assert: Old vendor and notification are physically gone; the rest remain
        """
        # Arrange
        now = utcnow()
        old, recent, live = vendor_factory(tenant), vendor_factory(tenant), vendor_factory(tenant)
        notification = notification_factory(tenant)
        await persist(uow_factory, old, recent, live, notification)
        async with uow_factory() as uow:
            await uow.vendors.soft_delete_by_id(old.id, at=now - timedelta(days=100))
            await uow.vendors.soft_delete_by_id(recent.id, at=now - timedelta(days=10))
            await uow.notifications.soft_delete_by_id(
                notification.id, at=now - timedelta(days=40)
            )

        # Act
        counts = await TombstoneReaper(database.get_engine()).purge_expired(now)

        # Assert
        assert counts["Vendor"] == 1
        assert counts["Notification"] == 1
        assert "Organization" not in counts
        async with uow_factory() as uow:
            assert await uow.vendors.get_by_id(old.id, include_deleted=True) is None
            assert await uow.vendors.get_by_id(recent.id, include_deleted=True) is not None
            assert await uow.vendors.get_by_id(live.id) is not None
            assert await uow.notifications.get_by_id(notification.id, include_deleted=True) is None

    async def test_override_extends_retention(
        self, uow_factory: UowFactory, database: Database, tenant: Tenant
    ) -> None:
        now = utcnow()
        vendor = vendor_factory(tenant)
        await persist(uow_factory, vendor)
        async with uow_factory() as uow:
            await uow.vendors.soft_delete_by_id(vendor.id, at=now - timedelta(days=100))

        counts = await TombstoneReaper(database.get_engine(), {"Vendor": 365}).purge_expired(now)

        assert counts["Vendor"] == 0

    async def test_old_organization_tombstone_is_kept(
        self, uow_factory: UowFactory, database: Database, tenant: Tenant
    ) -> None:
        now = utcnow()
        async with uow_factory() as uow:
            await uow.organizations.soft_delete_by_id(
                tenant.organization.id, at=now - timedelta(days=3650)
            )

        await TombstoneReaper(database.get_engine()).purge_expired(now)

        async with uow_factory() as uow:
            organization = await uow.organizations.get_by_id(
                tenant.organization.id, include_deleted=True
            )
        assert organization is not None

    async def test_nothing_to_purge(self, database: Database, tenant: Tenant) -> None:
        counts = await TombstoneReaper(database.get_engine()).purge_expired()

        assert set(counts) == {model.entity_type() for model in PURGE_ORDER}
        assert sum(counts.values()) == 0


# ============================================================================
# Expiry Index Tests
# ============================================================================


class TestExpiryIndexes:
    """Test ensure_expiry_indexes."""

    async def test_no_op_when_schema_is_complete(self, database: Database) -> None:
        assert await TombstoneReaper(database.get_engine()).ensure_expiry_indexes() == []

    @pytest.mark.parametrize("table", ["vendors", "notifications"])
    async def test_recreates_missing_index(self, database: Database, table: str) -> None:
        """Test a dropped expiry index is created again.

        Arrange: Drop the table's expiry index
        Act: ensure_expiry_indexes
        Assert: Exactly that index is reported as created
        """
        # Arrange
        name = expiry_index_name(table)
        async with database.get_engine().begin() as conn:
            await conn.execute(text(f"DROP INDEX {name}"))

        # Act
        created = await TombstoneReaper(database.get_engine()).ensure_expiry_indexes()

        # Assert
        assert created == [name]
