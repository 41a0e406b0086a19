"""Orchestrators for entities nothing else depends on."""

from typing import Any
from uuid import UUID

from src.app.cascade.base import ActorOwnedCascade
from src.domain.models import ENTITY_MODELS, Attachment, Notification


class AttachmentCascade(ActorOwnedCascade[Attachment]):
    model = Attachment
    bulk_children = True
    actor_field = "uploaded_by_id"

    def parent_refs(self, entity: Attachment) -> list[tuple[str, type[Any], UUID | None]]:
        refs = super().parent_refs(entity)
        refs.append(("parent", ENTITY_MODELS[entity.parent_model], entity.parent_id))
        return refs


class NotificationCascade(ActorOwnedCascade[Notification]):
    model = Notification
    bulk_children = True

    def parent_refs(self, entity: Notification) -> list[tuple[str, type[Any], UUID | None]]:
        refs = super().parent_refs(entity)
        if entity.entity_model is not None:
            refs.append(("entity", ENTITY_MODELS[entity.entity_model], entity.entity_id))
        return refs
