"""
Redis client used for cross-process trip claims and trip search caching.
Created once in the application lifespan and injected into the components
that need it; None means Redis is disabled or unreachable.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from seamless_ride.core.config import Settings
from seamless_ride.core.logging import get_logger

logger = get_logger(__name__)


async def connect_redis(settings: Settings) -> Optional[redis.Redis]:
    """Open a pooled connection and ping it. Returns None if Redis is disabled or down."""
    if not settings.REDIS_ENABLED:
        return None

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    return client


async def close_redis(client: Optional[redis.Redis]) -> None:
    """Close Redis connection on shutdown."""
    if client is not None:
        await client.aclose()
