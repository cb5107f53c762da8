"""Shared Redis connection.

Redis backs the per-IP rate limiter and nothing else. It is optional:
when the connection cannot be made at startup the app keeps running
and rate limiting is skipped.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from companion.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Open the pool and verify it with a PING."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except (RedisError, OSError):
        await client.aclose()
        raise
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[aioredis.Redis]:
    """The live connection, or None when Redis is not in use."""
    return _redis


def set_redis(client: Optional[aioredis.Redis]) -> None:
    """Swap the connection (tests plug a fake client in here)."""
    global _redis
    _redis = client
