"""
Redis connection for cross-process vehicle state locks.

Only required when vehicle_lock_backend is "redis"; /health reports its
reachability either way.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

from backend.app.core.config import settings

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency returning the shared client."""
    return redis_client


async def ping_redis(client=None) -> bool:
    """True when Redis answers PING; connection errors count as down."""
    client = client or redis_client
    try:
        return bool(await client.ping())
    except (RedisError, OSError):
        return False
