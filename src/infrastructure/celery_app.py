"""Celery application for background maintenance tasks."""

from celery import Celery
from celery.schedules import crontab

from src.infrastructure.config import Settings, get_settings
from src.infrastructure.constants import ReaperDefaults


def reaper_schedule(settings: Settings) -> crontab:
    """Build the reaper's beat schedule from its five-field crontab setting."""
    minute, hour, day_of_month, month_of_year, day_of_week = settings.reaper_cron.split()
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


def create_celery_app(settings: Settings | None = None) -> Celery:
    """Create the Celery application.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        Configured Celery application with the reaper beat schedule
    """
    settings = settings or get_settings()
    app = Celery(
        settings.app_name.lower().replace(" ", "_"),
        broker=settings.celery_broker_url,
        backend=settings.celery_result_backend,
        include=["src.app.tasks.reaper_tasks"],
    )
    app.conf.update(
        accept_content=["json"],
        task_serializer="json",
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        task_track_started=True,
        task_time_limit=30 * 60,
    )
    if settings.reaper_enabled:
        app.conf.beat_schedule = {
            "purge-expired-tombstones": {
                "task": ReaperDefaults.TASK_NAME,
                "schedule": reaper_schedule(settings),
            },
        }
    return app


celery_app = create_celery_app()
