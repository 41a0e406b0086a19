"""Background tasks for the application."""

from src.app.tasks.reaper_tasks import purge_expired_tombstones, run_reaper


__all__ = ["purge_expired_tombstones", "run_reaper"]
