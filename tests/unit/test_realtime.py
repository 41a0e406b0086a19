"""Tests for the Redis real-time event emitter.

Test Organization:
- TestRooms: Room naming helpers
- TestRedisEventEmitterEmit: Publishing behavior
- TestRedisEventEmitterFailures: Disabled emitter and transport errors
- TestRedisEventEmitterClose: Client cleanup
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from uuid_extension import uuid7

from src.external.realtime import (
    RedisEventEmitter,
    department_room,
    organization_room,
    rooms_for,
)
from src.infrastructure.config import Settings


@pytest.fixture
def redis_client() -> AsyncMock:
    """Mock asyncio Redis client."""
    client = AsyncMock()
    client.publish = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def emitter(redis_client: AsyncMock) -> RedisEventEmitter:
    settings = Settings(realtime_enabled=True, realtime_channel="taskmanager:events")
    return RedisEventEmitter(settings, client=redis_client)


# ============================================================================
# Room Tests
# ============================================================================


class TestRooms:
    """Test room naming."""

    def test_rooms_for_organization_and_department(self) -> None:
        org_id, dept_id = uuid7(), uuid7()

        assert rooms_for(org_id, dept_id) == [
            organization_room(org_id),
            department_room(dept_id),
        ]
        assert organization_room(org_id) == f"organization:{org_id}"
        assert department_room(dept_id) == f"department:{dept_id}"

    def test_rooms_for_organization_only(self) -> None:
        org_id = uuid7()

        assert rooms_for(org_id) == [f"organization:{org_id}"]

    def test_rooms_for_nothing(self) -> None:
        assert rooms_for(None) == []


# ============================================================================
# Emit Tests
# ============================================================================


class TestRedisEventEmitterEmit:
    """Test publishing events."""

    async def test_publishes_one_message_per_room(
        self, emitter: RedisEventEmitter, redis_client: AsyncMock
    ) -> None:
        """Test each room gets its own message on the channel.

        Arrange: Two rooms and an entity.deleted payload
        Act: emit
        Assert: Two publishes on the configured channel with room, event and payload
        """
        # Arrange
        entity_id = uuid7()
        rooms = [f"organization:{uuid7()}", f"department:{uuid7()}"]
        payload = {"entity_type": "Vendor", "entity_id": entity_id}

        # Act
        result = await emitter.emit(rooms, "entity.deleted", payload)

        # Assert
        assert result is True
        assert redis_client.publish.await_count == 2
        published = [call.args for call in redis_client.publish.await_args_list]
        assert {channel for channel, _ in published} == {"taskmanager:events"}
        messages = [json.loads(message) for _, message in published]
        assert [m["room"] for m in messages] == rooms
        assert all(m["event"] == "entity.deleted" for m in messages)
        assert messages[0]["payload"] == {"entity_type": "Vendor", "entity_id": str(entity_id)}


# ============================================================================
# Failure Tests
# ============================================================================


class TestRedisEventEmitterFailures:
    """Test non-delivery paths."""

    async def test_disabled_emitter_publishes_nothing(self, redis_client: AsyncMock) -> None:
        emitter = RedisEventEmitter(Settings(realtime_enabled=False), client=redis_client)

        assert await emitter.emit(["organization:x"], "entity.deleted", {}) is False
        redis_client.publish.assert_not_awaited()

    async def test_no_rooms_publishes_nothing(
        self, emitter: RedisEventEmitter, redis_client: AsyncMock
    ) -> None:
        assert await emitter.emit([], "entity.restored", {}) is False
        redis_client.publish.assert_not_awaited()

    @pytest.mark.parametrize("error", [RedisConnectionError("down"), OSError("reset")])
    async def test_transport_error_returns_false(
        self, emitter: RedisEventEmitter, redis_client: AsyncMock, error: Exception
    ) -> None:
        """Test publish failures are reported as False instead of raised.

        Arrange: Client whose publish raises
        Act: emit
        Assert: Returns False
        """
        redis_client.publish.side_effect = error

        assert await emitter.emit(["organization:x"], "entity.deleted", {}) is False


# ============================================================================
# Close Tests
# ============================================================================


class TestRedisEventEmitterClose:
    """Test client cleanup."""

    async def test_close_releases_client(
        self, emitter: RedisEventEmitter, redis_client: AsyncMock
    ) -> None:
        await emitter.close()
        await emitter.close()

        redis_client.aclose.assert_awaited_once()

    async def test_close_without_client_is_safe(self) -> None:
        await RedisEventEmitter(Settings()).close()
