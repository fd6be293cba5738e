"""Redis client for the commit broadcast hook."""

from __future__ import annotations

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from app.core.config import get_settings

log = structlog.get_logger()

_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Shared client, created on first use from ``redis_url``."""
    global _client
    if _client is None:
        url = get_settings().redis_url
        _client = redis.from_url(url, decode_responses=True)
        log.debug("redis.connected", url=url)
    return _client


async def ping_redis() -> bool:
    """True when the broadcast target answers PING."""
    try:
        return bool(await (await get_redis()).ping())
    except RedisError as exc:
        log.warning("redis.ping_failed", error=str(exc))
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
