"""Redis pub/sub implementation of the real-time event emitter.

Events are published as ``{"room", "event", "payload"}`` JSON messages on one
channel; the socket gateway subscribed to that channel forwards each message
to the clients joined to ``room``.
"""

from typing import Any
from uuid import UUID

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.external.interfaces import IEventEmitter
from src.infrastructure.config import Settings
from src.infrastructure.logging.config import get_logger
from src.utils import serialization


logger = get_logger(__name__)


def organization_room(organization_id: UUID) -> str:
    return f"organization:{organization_id}"


def department_room(department_id: UUID) -> str:
    return f"department:{department_id}"


def rooms_for(organization_id: UUID | None, department_id: UUID | None = None) -> list[str]:
    """Rooms interested in a change to a record of this tenant scope."""
    rooms = []
    if organization_id is not None:
        rooms.append(organization_room(organization_id))
    if department_id is not None:
        rooms.append(department_room(department_id))
    return rooms


class RedisEventEmitter(IEventEmitter):
    """Publishes lifecycle events to a Redis channel.

    The client is created lazily on first emit. Publishing failures are
    logged and reported as False.
    """

    def __init__(self, settings: Settings, client: "aioredis.Redis | None" = None) -> None:
        """Initialize the emitter.

        Args:
            settings: Application settings (redis url, channel, enable flag)
            client: Pre-built Redis client (tests)
        """
        self._settings = settings
        self._client = client

    def _get_client(self) -> "aioredis.Redis":
        if self._client is None:
            self._client = aioredis.from_url(
                self._settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self._settings.redis_max_connections,
            )
        return self._client

    async def emit(self, rooms: list[str], event: str, payload: dict[str, Any]) -> bool:
        if not self._settings.realtime_enabled or not rooms:
            return False
        try:
            client = self._get_client()
            for room in rooms:
                message = serialization.dumps({"room": room, "event": event, "payload": payload})
                await client.publish(self._settings.realtime_channel, message)
        except (RedisError, OSError) as e:
            logger.error("realtime_emit_failed", event_name=event, rooms=rooms, error=str(e))
            return False
        logger.debug("realtime_event_emitted", event_name=event, rooms=rooms)
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("realtime_emitter_closed")
