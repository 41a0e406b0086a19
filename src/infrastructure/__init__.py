"""Infrastructure layer containing implementations."""

__all__ = [
    "config",
    "logging",
    "persistence",
    "repositories",
    "validation",
]
