"""
Tests for the Redis fan-out of committed signals.

Tests cover:
- Each signal is buffered and published as JSON
- The buffer is capped and given a TTL
- Readiness ping against the broadcast target
"""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.broadcast import (
    BUFFER_SIZE,
    BUFFER_TTL_SECONDS,
    REDIS_BUFFER_KEY,
    REDIS_PUBSUB_CHANNEL,
    publish_signals,
)
from app.core.redis import ping_redis
from app.core.signals import EVENT_CREATED, DomainSignal


def _redis_with_pipeline():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    redis_mock = MagicMock()
    redis_mock.pipeline.return_value.__aenter__.return_value = pipe
    return redis_mock, pipe


class TestPublishSignals:
    @pytest.mark.asyncio
    async def test_publishes_each_signal(self):
        signals = [
            DomainSignal(EVENT_CREATED, uuid.uuid4(), "shift", {"status": "active"}),
            DomainSignal(EVENT_CREATED, uuid.uuid4(), "work_period", {"status": "active"}),
        ]
        redis_mock, pipe = _redis_with_pipeline()

        with patch("app.core.broadcast.get_redis") as mock_redis:
            mock_redis.return_value = redis_mock
            await publish_signals(signals)

        assert pipe.publish.call_count == 2
        channel, message = pipe.publish.call_args_list[0].args
        assert channel == REDIS_PUBSUB_CHANNEL
        assert json.loads(message) == {
            "name": "event.created",
            "event_id": str(signals[0].event_id),
            "event_type": "shift",
            "payload": {"status": "active"},
        }
        assert pipe.lpush.call_count == 2
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_buffer_is_capped(self):
        redis_mock, pipe = _redis_with_pipeline()

        with patch("app.core.broadcast.get_redis") as mock_redis:
            mock_redis.return_value = redis_mock
            await publish_signals([DomainSignal(EVENT_CREATED, uuid.uuid4(), "task")])

        pipe.ltrim.assert_called_once_with(REDIS_BUFFER_KEY, 0, BUFFER_SIZE - 1)
        pipe.expire.assert_called_once_with(REDIS_BUFFER_KEY, BUFFER_TTL_SECONDS)


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_ok(self):
        redis_mock = MagicMock()
        redis_mock.ping = AsyncMock(return_value=True)
        with patch("app.core.redis.get_redis") as mock_redis:
            mock_redis.return_value = redis_mock
            assert await ping_redis() is True

    @pytest.mark.asyncio
    async def test_ping_failure_reported(self):
        redis_mock = MagicMock()
        redis_mock.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        with patch("app.core.redis.get_redis") as mock_redis:
            mock_redis.return_value = redis_mock
            assert await ping_redis() is False
