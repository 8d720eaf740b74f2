"""
Redis-backed claim strategy for multi-worker deployments.

Every worker takes the same Redis lock ("trip-claim:{trip_id}") before
touching the seat ledger for that trip. The lock has a TTL so a crashed
worker cannot hold a trip forever.

Failure mode: unlike a cache, a claim must not fail open. If Redis is down
or the lock cannot be acquired within the blocking timeout the request is
rejected with STORAGE_UNAVAILABLE, which callers may retry with backoff.
The database unique index still guards the invariant if a lock expires
while its holder is mid-transaction.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

from seamless_ride.core.exceptions import StorageUnavailableError
from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import claim_failures
from seamless_ride.services.interfaces.trip_claim import TripClaimStrategy

logger = get_logger(__name__)


class RedisTripClaim(TripClaimStrategy):
    name = "redis"

    def __init__(
        self,
        client: redis.Redis,
        lock_timeout: float = 10.0,
        blocking_timeout: float = 5.0,
    ):
        self.redis = client
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout

    @staticmethod
    def key(trip_id: int) -> str:
        return f"trip-claim:{trip_id}"

    @asynccontextmanager
    async def hold(self, trip_id: int) -> AsyncIterator[None]:
        lock = self.redis.lock(
            self.key(trip_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            claim_failures.labels(strategy=self.name).inc()
            logger.error("trip_claim_unavailable", trip_id=trip_id, error=str(e))
            raise StorageUnavailableError() from e

        if not acquired:
            claim_failures.labels(strategy=self.name).inc()
            logger.warning("trip_claim_timeout", trip_id=trip_id, waited=self.blocking_timeout)
            raise StorageUnavailableError("Trip is busy, try again shortly")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # TTL elapsed before release; the unique index covered the overlap
                logger.warning("trip_claim_expired", trip_id=trip_id, ttl=self.lock_timeout)
            except RedisError as e:
                logger.error("trip_claim_release_failed", trip_id=trip_id, error=str(e))
