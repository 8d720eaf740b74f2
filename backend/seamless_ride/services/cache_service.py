"""
Redis caching for trip searches.

CACHING STRATEGY
================

What we cache:
  - Trip search results, JSON-serialized
  - Key pattern: "trips:search:{origin}|{destination}|{date}"

Why:
  - Search is the most frequent read and trips are immutable once seeded,
    so a cached result can only go stale by a new seeding run
  - TTL-based expiry is the only invalidation needed; invalidate_all() is
    called after seeding

What we never cache:
  - Occupied seats. The seat ledger is the source of truth for
    availability and is always read from the database.

Cache failures are logged and treated as misses; the database stays
authoritative.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import record_cache_operation

logger = get_logger(__name__)

KEY_PREFIX = "trips:search:"


class TripSearchCache:
    def __init__(self, client: Optional[redis.Redis], ttl: int = 300):
        self.client = client
        self.ttl = ttl

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @staticmethod
    def make_key(origin: str, destination: str, departure_date: date) -> str:
        return f"{KEY_PREFIX}{origin}|{destination}|{departure_date.isoformat()}"

    async def get(self, origin: str, destination: str, departure_date: date) -> Optional[list[dict]]:
        if not self.client:
            return None

        key = self.make_key(origin, destination, departure_date)
        try:
            data = await self.client.get(key)
        except RedisError as e:
            record_cache_operation("get", "error")
            logger.error("cache_get_error", key=key, error=str(e))
            return None

        if data is None:
            record_cache_operation("get", "miss")
            logger.debug("cache_miss", key=key)
            return None

        record_cache_operation("get", "hit")
        logger.debug("cache_hit", key=key)
        return json.loads(data)

    async def set(self, origin: str, destination: str, departure_date: date, trips: list[dict]) -> None:
        if not self.client:
            return

        key = self.make_key(origin, destination, departure_date)
        try:
            await self.client.setex(key, self.ttl, json.dumps(trips, default=str))
            record_cache_operation("set", "ok")
            logger.debug("cache_set", key=key, ttl=self.ttl)
        except RedisError as e:
            record_cache_operation("set", "error")
            logger.error("cache_set_error", key=key, error=str(e))

    async def invalidate_all(self) -> None:
        """Drop every cached search (SCAN on the key prefix)."""
        if not self.client:
            return

        try:
            deleted = 0
            async for key in self.client.scan_iter(match=f"{KEY_PREFIX}*", count=100):
                await self.client.delete(key)
                deleted += 1
            logger.info("cache_invalidated", keys_deleted=deleted)
        except RedisError as e:
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis cache statistics for the health endpoint."""
        if not self.client:
            return {"status": "disabled"}

        try:
            info = await self.client.info("stats")
        except RedisError as e:
            return {"status": "error", "error": str(e)}

        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
