"""HTTP entry point for the lifecycle API."""

import uvicorn

from src.infrastructure.config import get_settings
from src.presentation.api import create_app


app = create_app()


def main() -> None:
    """Serve the API with uvicorn."""
    settings = get_settings()

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        # reload and multiple workers are mutually exclusive in uvicorn
        reload=settings.reload and settings.is_development,
        workers=1 if settings.reload else settings.workers,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
