"""Registry of cascade orchestrators keyed by entity type name."""

from typing import Any

from src.app.cascade.base import CascadeOrchestrator
from src.app.cascade.leaf import AttachmentCascade, NotificationCascade
from src.app.cascade.material import MaterialCascade, VendorCascade
from src.app.cascade.organization import DepartmentCascade, OrganizationCascade
from src.app.cascade.task import TaskActivityCascade, TaskCascade, TaskCommentCascade
from src.app.cascade.user import UserCascade
from src.domain.constants import CascadeDefaults, TaskType


class CascadeRegistry:
    """Looks orchestrators up by entity type name.

    Orchestrators resolve their child orchestrators through the registry,
    so every type must be registered before a cascade runs.
    """

    def __init__(self) -> None:
        self._orchestrators: dict[str, CascadeOrchestrator[Any]] = {}

    def register(self, orchestrator: CascadeOrchestrator[Any], *aliases: str) -> None:
        for name in (orchestrator.entity_type, *aliases):
            self._orchestrators[name] = orchestrator

    def get(self, entity_type: str) -> CascadeOrchestrator[Any]:
        try:
            return self._orchestrators[entity_type]
        except KeyError:
            raise LookupError(f"No cascade registered for {entity_type}") from None

    def for_model(self, model: type[Any]) -> CascadeOrchestrator[Any]:
        return self.get(model.__name__)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._orchestrators

    @property
    def entity_types(self) -> list[str]:
        return sorted(self._orchestrators)


def build_cascade_registry(batch_size: int = CascadeDefaults.BATCH_SIZE) -> CascadeRegistry:
    """Create a registry holding one orchestrator per soft-deletable type.

    Args:
        batch_size: Keyset page size for cursor-batched cascades
    """
    registry = CascadeRegistry()
    registry.register(OrganizationCascade(registry, batch_size))
    registry.register(DepartmentCascade(registry, batch_size))
    registry.register(UserCascade(registry, batch_size))
    registry.register(TaskCascade(registry, batch_size), *(t.value for t in TaskType))
    registry.register(TaskActivityCascade(registry, batch_size))
    registry.register(TaskCommentCascade(registry, batch_size))
    registry.register(MaterialCascade(registry, batch_size))
    registry.register(VendorCascade(registry, batch_size))
    registry.register(AttachmentCascade(registry, batch_size))
    registry.register(NotificationCascade(registry, batch_size))
    return registry
