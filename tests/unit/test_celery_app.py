"""Tests for the Celery application and the reaper task.

Test Organization:
- TestReaperSchedule: Crontab built from settings
- TestCreateCeleryApp: Application configuration and beat schedule
- TestPurgeExpiredTombstones: Task execution and retry
"""

from unittest.mock import AsyncMock, patch

import pytest
from celery.schedules import crontab
from sqlalchemy.exc import OperationalError

from src.app.tasks.reaper_tasks import purge_expired_tombstones
from src.infrastructure.celery_app import create_celery_app, reaper_schedule
from src.infrastructure.config import Settings


# ============================================================================
# Schedule Tests
# ============================================================================


class TestReaperSchedule:
    """Test reaper_schedule."""

    def test_builds_crontab_from_five_fields(self) -> None:
        """Test each cron field lands in the matching crontab argument.

        Arrange: Settings with a weekly schedule
        Act: reaper_schedule
        Assert: Crontab equals the hand-built one
        """
        settings = Settings(reaper_cron="30 2 * * 0")

        assert reaper_schedule(settings) == crontab(
            minute="30", hour="2", day_of_month="*", month_of_year="*", day_of_week="0"
        )


# ============================================================================
# Application Tests
# ============================================================================


class TestCreateCeleryApp:
    """Test create_celery_app."""

    def test_registers_reaper_beat_entry(self) -> None:
        """Test the nightly purge is scheduled when the reaper is enabled."""
        app = create_celery_app(Settings(reaper_enabled=True))

        entry = app.conf.beat_schedule["purge-expired-tombstones"]
        assert entry["task"] == "tombstones.purge_expired"
        assert isinstance(entry["schedule"], crontab)
        assert app.conf.task_serializer == "json"
        assert app.conf.enable_utc is True

    def test_no_beat_entry_when_reaper_disabled(self) -> None:
        app = create_celery_app(Settings(reaper_enabled=False))

        assert "purge-expired-tombstones" not in (app.conf.beat_schedule or {})

    def test_uses_configured_broker(self) -> None:
        app = create_celery_app(Settings(celery_broker_url="redis://broker:6379/5"))

        assert app.conf.broker_url == "redis://broker:6379/5"


# ============================================================================
# Task Tests
# ============================================================================


class TestPurgeExpiredTombstones:
    """Test the purge task body."""

    def test_returns_counts_per_type(self) -> None:
        """Test the task runs the reaper and returns its counts.

        Arrange: run_reaper patched to return counts
        Act: Run the task eagerly
        Assert: Counts returned unchanged
        """
        counts = {"Notification": 4, "Attachment": 1}
        with patch(
            "src.app.tasks.reaper_tasks.run_reaper", new=AsyncMock(return_value=counts)
        ):
            result = purge_expired_tombstones.apply().get()

        assert result == counts

    def test_retries_on_database_error(self) -> None:
        """Test database failures trigger a Celery retry."""
        error = OperationalError("DELETE", {}, Exception("connection refused"))
        with (
            patch("src.app.tasks.reaper_tasks.run_reaper", new=AsyncMock(side_effect=error)),
            patch.object(
                purge_expired_tombstones, "retry", side_effect=RuntimeError("retry")
            ) as mock_retry,
        ):
            with pytest.raises(RuntimeError, match="retry"):
                purge_expired_tombstones.apply(throw=True).get()

        mock_retry.assert_called_once()
        assert mock_retry.call_args.kwargs["exc"] is error
