"""
Reservation history: a user's confirmed seats joined with their trips.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seamless_ride.core.exceptions import StorageUnavailableError, UnauthenticatedError
from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import record_storage_error
from seamless_ride.db.session import STORAGE_ERRORS
from seamless_ride.models.reservation import Reservation, ReservationStatus
from seamless_ride.models.trip import Trip

logger = get_logger(__name__)


class ReservationHistory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def reservations_for(self, user_id: Optional[int]) -> list[tuple[Reservation, Trip]]:
        """Newest first; seats confirmed together are ordered by id, highest first."""
        if user_id is None:
            raise UnauthenticatedError("Sign in to see your reservations")

        query = (
            select(Reservation, Trip)
            .join(Trip, Reservation.trip_id == Trip.id)
            .where(
                Reservation.user_id == user_id,
                Reservation.status == ReservationStatus.CONFIRMED.value,
            )
            .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        )
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(query)).all()
        except STORAGE_ERRORS as e:
            record_storage_error("reservation_history")
            logger.error("history_query_failed", user_id=user_id, error=str(e))
            raise StorageUnavailableError() from e

        return [(reservation, trip) for reservation, trip in rows]
