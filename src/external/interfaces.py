"""External service interface definitions.

This module defines abstract interfaces for services outside the process
(real-time fan-out to connected clients), enabling dependency injection and
facilitating testing with in-memory implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class IEventEmitter(ABC):
    """Abstract interface for real-time event delivery.

    Events are addressed to rooms (``organization:<id>``,
    ``department:<id>``); the transport behind a room is up to the
    implementation.
    """

    @abstractmethod
    async def emit(self, rooms: list[str], event: str, payload: dict[str, Any]) -> bool:
        """Deliver one event to every room in ``rooms``.

        Args:
            rooms: Target room names
            event: Event name (``entity.deleted``, ``entity.restored``)
            payload: JSON-serializable event body

        Returns:
            True if the event was handed to the transport, False otherwise

        Note:
            Implementations should log and return False rather than raise:
            events are emitted after the transaction committed and a delivery
            failure must not surface as a failed operation.
        """

    async def close(self) -> None:
        """Release transport resources."""
