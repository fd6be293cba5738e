"""
Redis Pub/Sub fan-out of committed domain signals.

Registered as a commit hook at startup when ``broadcast_enabled`` is set.
Delivery to end clients is the subscriber's concern.
"""

from __future__ import annotations

import json

import structlog

from app.core.redis import get_redis
from app.core.signals import DomainSignal

log = structlog.get_logger()

REDIS_PUBSUB_CHANNEL = "mosaic:events:pubsub"
REDIS_BUFFER_KEY = "mosaic:events:buffer"
BUFFER_SIZE = 500
BUFFER_TTL_SECONDS = 86400


async def publish_signals(signals: list[DomainSignal]) -> None:
    """Buffer each signal in a capped Redis list and publish it."""
    redis = await get_redis()

    async with redis.pipeline() as pipe:
        for signal in signals:
            message = json.dumps(signal.as_dict())
            pipe.lpush(REDIS_BUFFER_KEY, message)
            pipe.publish(REDIS_PUBSUB_CHANNEL, message)
        pipe.ltrim(REDIS_BUFFER_KEY, 0, BUFFER_SIZE - 1)
        pipe.expire(REDIS_BUFFER_KEY, BUFFER_TTL_SECONDS)
        await pipe.execute()

    log.debug("broadcast.published", count=len(signals))
