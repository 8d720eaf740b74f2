"""
Trip claim strategy factory.
Configures which per-trip serialization mechanism the seat ledger uses.
"""

from typing import Optional

import redis.asyncio as redis

from seamless_ride.core.config import Settings
from seamless_ride.core.logging import get_logger
from seamless_ride.services.interfaces import LocalTripClaim, TripClaimStrategy
from seamless_ride.services.redis_claim import RedisTripClaim

logger = get_logger(__name__)


def get_claim_strategy(settings: Settings, redis_client: Optional[redis.Redis]) -> TripClaimStrategy:
    """
    Build the configured claim strategy.

    - "local": LocalTripClaim (single worker, tests)
    - "redis": RedisTripClaim (several workers behind a load balancer)

    Selected via the CLAIM_STRATEGY env var. Asking for "redis" without a
    reachable Redis is a configuration error, not something to paper over.
    """
    strategy = settings.CLAIM_STRATEGY.lower()

    if strategy == "redis":
        if redis_client is None:
            raise RuntimeError("CLAIM_STRATEGY=redis requires a reachable Redis (check REDIS_URL)")
        return RedisTripClaim(
            redis_client,
            lock_timeout=settings.CLAIM_LOCK_TIMEOUT,
            blocking_timeout=settings.CLAIM_BLOCKING_TIMEOUT,
        )
    if strategy == "local":
        return LocalTripClaim()

    raise ValueError(f"Unknown CLAIM_STRATEGY: {settings.CLAIM_STRATEGY!r}")
