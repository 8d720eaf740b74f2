"""
Trip seeding. Fills an empty catalog with one trip per ordered pair of
locations for each of the next DAYS_AHEAD days.
"""

from datetime import date, timedelta
from itertools import permutations
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seamless_ride.core.logging import get_logger
from seamless_ride.models.trip import Trip

logger = get_logger(__name__)

LOCATIONS = ("Malete Campus", "Lagos", "Abuja", "Ibadan")
DAYS_AHEAD = 20
DEFAULT_PRICE = 15000


def build_trips(
    locations: Sequence[str] = LOCATIONS,
    start: Optional[date] = None,
    days: int = DAYS_AHEAD,
    price: int = DEFAULT_PRICE,
) -> list[Trip]:
    start = start or date.today()
    return [
        Trip(origin=origin, destination=destination, departure_date=start + timedelta(days=offset), price=price)
        for origin, destination in permutations(locations, 2)
        for offset in range(days)
    ]


async def seed_trips(
    session_factory: async_sessionmaker[AsyncSession],
    start: Optional[date] = None,
) -> int:
    """Insert the default schedule if no trips exist. Returns the number inserted."""
    async with session_factory() as session:
        async with session.begin():
            existing = await session.scalar(select(func.count()).select_from(Trip))
            if existing:
                logger.info("trip_seed_skipped", existing=existing)
                return 0

            trips = build_trips(start=start)
            session.add_all(trips)

    logger.info("trips_seeded", count=len(trips))
    return len(trips)
