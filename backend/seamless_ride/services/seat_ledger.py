"""
Seat ledger: the durable record of confirmed (trip, seat) pairs.

CONCURRENCY STRATEGY: Per-trip claim + transactional check-then-insert
=====================================================================

Problem:
  Two users ask for seat 6 on the same trip at the same moment. Both check
  "is seat 6 taken?", both see "no", both insert. Result: double booking.
  Inserting seats one by one and stopping at the first conflict is no
  better: the seats inserted before the conflict stay booked.

Solution, in three layers:

  1. Per-trip claim (TripClaimStrategy). try_confirm holds an exclusive
     claim on the trip for the whole check-then-insert sequence. Claims are
     keyed by trip id, so bookings for different trips never wait on each
     other.

  2. One transaction per batch. Inside the claim we lock the trip row
     (SELECT ... FOR UPDATE, which also serializes workers that do not
     share a claim), look for any requested seat that is already
     confirmed, and either abort with no writes or insert every seat and
     commit once. A batch is all-or-nothing.

  3. Partial unique index on (trip_id, seat_number) WHERE status =
     'confirmed'. If anything above is bypassed (a Redis lock that expired,
     a second deployment with a different claim strategy) the insert fails
     with IntegrityError, which we report as a seat conflict. An
     IntegrityError that leaves none of the requested seats confirmed came
     from some other constraint and is reported as STORAGE_UNAVAILABLE.

  The same transaction also checks that the booking user still exists and
  is active, since a signed session can outlive its user row.

  The claim and the session are both entered with async with, so they are
  released on success, on rejection, on storage errors and on task
  cancellation. No claim outlives the call.

This is the only code path that writes reservations.
"""

import time
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seamless_ride.core.exceptions import (
    SeatConflictError,
    StorageUnavailableError,
    TripNotFoundError,
    UnauthenticatedError,
)
from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import (
    record_claim_wait,
    record_storage_error,
    seats_confirmed,
    unique_index_conflicts,
)
from seamless_ride.db.session import STORAGE_ERRORS
from seamless_ride.models.reservation import Reservation, ReservationStatus
from seamless_ride.models.trip import Trip
from seamless_ride.models.user import User
from seamless_ride.schemas.reservation import ReservationBatch
from seamless_ride.services.interfaces.trip_claim import TripClaimStrategy

logger = get_logger(__name__)


class SeatLedger:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        claim: TripClaimStrategy,
    ):
        self._session_factory = session_factory
        self._claim = claim

    @property
    def claim(self) -> TripClaimStrategy:
        return self._claim

    async def occupied_seats(self, trip_id: int) -> set[int]:
        """Seat numbers currently confirmed on a trip. Side-effect free."""
        query = select(Reservation.seat_number).where(
            Reservation.trip_id == trip_id,
            Reservation.status == ReservationStatus.CONFIRMED.value,
        )
        try:
            async with self._session_factory() as session:
                return set((await session.execute(query)).scalars().all())
        except STORAGE_ERRORS as e:
            record_storage_error("seat_ledger")
            logger.error("occupied_seats_failed", trip_id=trip_id, error=str(e))
            raise StorageUnavailableError() from e

    async def try_confirm(self, trip_id: int, seat_numbers: Iterable[int], user_id: int) -> ReservationBatch:
        """
        Confirm every requested seat for user_id as one unit, or none of them.

        Raises:
            SeatConflictError: one or more seats already confirmed (names them)
            UnauthenticatedError: user_id is unknown or deactivated
            TripNotFoundError: no such trip
            StorageUnavailableError: database or claim backend unreachable
        """
        seats = sorted(set(seat_numbers))
        if not seats:
            raise ValueError("seat_numbers must not be empty")

        wait_started = time.perf_counter()
        async with self._claim.hold(trip_id):
            record_claim_wait(self._claim.name, time.perf_counter() - wait_started)
            try:
                batch = await self._confirm_claimed(trip_id, seats, user_id)
            except IntegrityError as e:
                taken = (await self.occupied_seats(trip_id)) & set(seats)
                if not taken:
                    # not the confirmed-seat index (foreign key, check constraint)
                    record_storage_error("seat_ledger")
                    logger.error(
                        "seat_confirm_integrity_error",
                        trip_id=trip_id,
                        user_id=user_id,
                        seats=seats,
                        error=str(e.orig),
                    )
                    raise StorageUnavailableError() from e
                unique_index_conflicts.inc()
                logger.warning(
                    "seat_conflict_unique_index",
                    trip_id=trip_id,
                    requested=seats,
                    taken=sorted(taken),
                )
                raise SeatConflictError(trip_id, taken) from e
            except STORAGE_ERRORS as e:
                record_storage_error("seat_ledger")
                logger.error("seat_confirm_failed", trip_id=trip_id, seats=seats, error=str(e))
                raise StorageUnavailableError() from e

        seats_confirmed.inc(len(batch.seat_numbers))
        logger.info(
            "seats_confirmed",
            trip_id=trip_id,
            user_id=user_id,
            seats=batch.seat_numbers,
            reservation_ids=batch.reservation_ids,
        )
        return batch

    async def _confirm_claimed(self, trip_id: int, seats: list[int], user_id: int) -> ReservationBatch:
        async with self._session_factory() as session:
            async with session.begin():
                if not await self._user_can_book(session, user_id):
                    logger.warning("reservation_by_unknown_user", user_id=user_id, trip_id=trip_id)
                    raise UnauthenticatedError()

                locked = await session.scalar(
                    select(Trip.id).where(Trip.id == trip_id).with_for_update()
                )
                if locked is None:
                    raise TripNotFoundError(trip_id)

                taken = await self._confirmed_among(session, trip_id, seats)
                if taken:
                    logger.info("seat_conflict", trip_id=trip_id, requested=seats, taken=sorted(taken))
                    raise SeatConflictError(trip_id, taken)

                confirmed_at = datetime.now(timezone.utc)
                rows = [
                    Reservation(
                        trip_id=trip_id,
                        user_id=user_id,
                        seat_number=seat,
                        status=ReservationStatus.CONFIRMED.value,
                        created_at=confirmed_at,
                    )
                    for seat in seats
                ]
                session.add_all(rows)
                await session.flush()
            # leaving begin() commits

        return ReservationBatch(
            reservation_ids=[row.id for row in rows],
            trip_id=trip_id,
            seat_numbers=seats,
            user_id=user_id,
            confirmed_at=confirmed_at,
        )

    async def _user_can_book(self, session: AsyncSession, user_id: int) -> bool:
        """A session token can outlive its user; only existing, active users book."""
        found = await session.scalar(
            select(User.id).where(User.id == user_id, User.is_active.is_(True))
        )
        return found is not None

    async def _confirmed_among(self, session: AsyncSession, trip_id: int, seats: list[int]) -> set[int]:
        result = await session.execute(
            select(Reservation.seat_number).where(
                Reservation.trip_id == trip_id,
                Reservation.seat_number.in_(seats),
                Reservation.status == ReservationStatus.CONFIRMED.value,
            )
        )
        return set(result.scalars().all())
