"""
Trip catalog: read-only access to scheduled trips.

Search is an exact match on origin, destination and departure date, ordered
by trip id so results are deterministic. Storage failures are reported as
STORAGE_UNAVAILABLE and never retried here.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seamless_ride.core.exceptions import StorageUnavailableError, TripNotFoundError
from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import record_storage_error
from seamless_ride.db.session import STORAGE_ERRORS
from seamless_ride.models.trip import Trip
from seamless_ride.services.cache_service import TripSearchCache

logger = get_logger(__name__)


def _trip_to_dict(trip: Trip) -> dict:
    return {
        "id": trip.id,
        "origin": trip.origin,
        "destination": trip.destination,
        "departure_date": trip.departure_date.isoformat(),
        "price": trip.price,
    }


def _trip_from_dict(data: dict) -> Trip:
    return Trip(
        id=data["id"],
        origin=data["origin"],
        destination=data["destination"],
        departure_date=date.fromisoformat(data["departure_date"]),
        price=data["price"],
    )


class TripCatalog:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: Optional[TripSearchCache] = None,
    ):
        self._session_factory = session_factory
        self._cache = cache

    async def find_trips(self, origin: str, destination: str, departure_date: date) -> list[Trip]:
        if self._cache:
            cached = await self._cache.get(origin, destination, departure_date)
            if cached is not None:
                return [_trip_from_dict(item) for item in cached]

        query = (
            select(Trip)
            .where(
                Trip.origin == origin,
                Trip.destination == destination,
                Trip.departure_date == departure_date,
            )
            .order_by(Trip.id.asc())
        )
        try:
            async with self._session_factory() as session:
                trips = list((await session.execute(query)).scalars().all())
        except STORAGE_ERRORS as e:
            record_storage_error("trip_catalog")
            logger.error("trip_search_failed", origin=origin, destination=destination, error=str(e))
            raise StorageUnavailableError() from e

        logger.debug(
            "trip_search",
            origin=origin,
            destination=destination,
            date=departure_date.isoformat(),
            results=len(trips),
        )
        if self._cache:
            await self._cache.set(origin, destination, departure_date, [_trip_to_dict(t) for t in trips])
        return trips

    async def get_trip(self, trip_id: int) -> Trip:
        try:
            async with self._session_factory() as session:
                trip = await session.get(Trip, trip_id)
        except STORAGE_ERRORS as e:
            record_storage_error("trip_catalog")
            logger.error("trip_lookup_failed", trip_id=trip_id, error=str(e))
            raise StorageUnavailableError() from e

        if trip is None:
            raise TripNotFoundError(trip_id)
        return trip

    async def list_locations(self) -> list[str]:
        """Every place a trip leaves from or goes to, alphabetically."""
        names = union(select(Trip.origin), select(Trip.destination)).subquery()
        query = select(names.c.origin).order_by(names.c.origin)
        try:
            async with self._session_factory() as session:
                return list((await session.execute(query)).scalars().all())
        except STORAGE_ERRORS as e:
            record_storage_error("trip_catalog")
            logger.error("location_list_failed", error=str(e))
            raise StorageUnavailableError() from e
