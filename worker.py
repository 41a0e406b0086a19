"""Celery worker for background maintenance tasks.

Runs the worker with an embedded beat scheduler so the tombstone reaper
fires on its cron schedule. For multiple workers, run ``celery beat``
separately and start workers with ``--no-beat``.
"""

import sys

from src.app.tasks.reaper_tasks import purge_expired_tombstones
from src.infrastructure.celery_app import celery_app
from src.infrastructure.config import get_settings
from src.infrastructure.logging.config import configure_logging, get_logger


# Get settings
settings = get_settings()

# Configure logging
configure_logging(settings)
logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Start the Celery worker."""
    args = list(argv if argv is not None else sys.argv[1:])
    embed_beat = settings.reaper_enabled and "--no-beat" not in args
    args = [arg for arg in args if arg != "--no-beat"]

    logger.info(
        "celery_worker_starting",
        broker_url=celery_app.conf.broker_url,
        tasks=[purge_expired_tombstones.name],
        beat=embed_beat,
        reaper_cron=settings.reaper_cron if embed_beat else None,
    )

    worker_args = ["worker", f"--loglevel={settings.log_level}", *args]
    if embed_beat:
        worker_args.append("--beat")
    celery_app.worker_main(worker_args)


if __name__ == "__main__":
    main()
