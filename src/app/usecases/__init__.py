"""Application use cases."""

from src.app.usecases.lifecycle_usecases import (
    GetEntityUseCase,
    GetRestoreAuditUseCase,
    ListEntitiesUseCase,
    RestoreEntityUseCase,
    SoftDeleteEntityUseCase,
)


__all__ = [
    "GetEntityUseCase",
    "GetRestoreAuditUseCase",
    "ListEntitiesUseCase",
    "RestoreEntityUseCase",
    "SoftDeleteEntityUseCase",
]
