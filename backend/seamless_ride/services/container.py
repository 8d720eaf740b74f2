"""
Service container: every component built once from Settings and shared by
all requests for the lifetime of the process.
"""

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seamless_ride.core.config import Settings
from seamless_ride.services.cache_service import TripSearchCache
from seamless_ride.services.history_service import ReservationHistory
from seamless_ride.services.interfaces.trip_claim import TripClaimStrategy
from seamless_ride.services.reservation_engine import ReservationEngine
from seamless_ride.services.seat_ledger import SeatLedger
from seamless_ride.services.strategy_factory import get_claim_strategy
from seamless_ride.services.trip_catalog import TripCatalog


@dataclass
class Services:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    cache: TripSearchCache
    catalog: TripCatalog
    ledger: SeatLedger
    engine: ReservationEngine
    history: ReservationHistory


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    redis_client: Optional[redis.Redis] = None,
    claim: Optional[TripClaimStrategy] = None,
) -> Services:
    cache = TripSearchCache(redis_client, ttl=settings.REDIS_CACHE_TTL)
    ledger = SeatLedger(session_factory, claim or get_claim_strategy(settings, redis_client))
    return Services(
        settings=settings,
        session_factory=session_factory,
        cache=cache,
        catalog=TripCatalog(session_factory, cache),
        ledger=ledger,
        engine=ReservationEngine(
            ledger,
            capacity=settings.TRIP_SEAT_CAPACITY,
            max_seats=settings.MAX_SEATS_PER_RESERVATION,
        ),
        history=ReservationHistory(session_factory),
    )
