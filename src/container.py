"""Dependency injection container configuration."""

from typing import Any

from dependency_injector import containers, providers

from src.app.authorization import RoleMatrixAuthorizer
from src.app.cascade import build_cascade_registry
from src.app.usecases.lifecycle_usecases import (
    GetEntityUseCase,
    GetRestoreAuditUseCase,
    ListEntitiesUseCase,
    RestoreEntityUseCase,
    SoftDeleteEntityUseCase,
)
from src.external.realtime import RedisEventEmitter
from src.infrastructure.config import get_settings
from src.infrastructure.persistence.database import Database
from src.infrastructure.persistence.unit_of_work import UnitOfWork


class UseCases(containers.DeclarativeContainer):
    """Use cases container for better organization."""

    uow_factory: providers.Dependency[Any] = providers.Dependency()
    cascade_registry: providers.Dependency[Any] = providers.Dependency()
    authorizer: providers.Dependency[Any] = providers.Dependency()
    event_emitter: providers.Dependency[Any] = providers.Dependency()

    get_entity = providers.Factory(
        GetEntityUseCase,
        uow_factory=uow_factory,
        cascades=cascade_registry,
        authorizer=authorizer,
    )
    list_entities = providers.Factory(
        ListEntitiesUseCase,
        uow_factory=uow_factory,
        cascades=cascade_registry,
        authorizer=authorizer,
    )
    soft_delete_entity = providers.Factory(
        SoftDeleteEntityUseCase,
        uow_factory=uow_factory,
        cascades=cascade_registry,
        authorizer=authorizer,
        event_emitter=event_emitter,
    )
    restore_entity = providers.Factory(
        RestoreEntityUseCase,
        uow_factory=uow_factory,
        cascades=cascade_registry,
        authorizer=authorizer,
        event_emitter=event_emitter,
    )
    get_restore_audit = providers.Factory(
        GetRestoreAuditUseCase,
        uow_factory=uow_factory,
        cascades=cascade_registry,
        authorizer=authorizer,
    )


class Container(containers.DeclarativeContainer):
    """Application dependency injection container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "src.presentation.api.v1.endpoints.lifecycle",
            "src.presentation.api.v1.endpoints.health",
        ]
    )

    # Configuration
    config = providers.Singleton(get_settings)

    # Infrastructure
    database = providers.Singleton(Database, settings=config)

    # Session factory for Unit of Work
    session_factory_provider = database.provided.get_session_factory.call()

    # Unit of Work factory: one transaction context per lifecycle operation
    uow_factory = providers.Factory(
        UnitOfWork,
        session_factory=session_factory_provider,
    )

    # Cascades are stateless and shared
    cascade_registry = providers.Singleton(
        build_cascade_registry,
        batch_size=config.provided.cascade_batch_size,
    )
    authorizer = providers.Singleton(RoleMatrixAuthorizer)

    # External Services
    event_emitter = providers.Singleton(RedisEventEmitter, settings=config)

    # Use Cases (nested container)
    use_cases = providers.Container(
        UseCases,
        uow_factory=uow_factory.provider,
        cascade_registry=cascade_registry,
        authorizer=authorizer,
        event_emitter=event_emitter,
    )
