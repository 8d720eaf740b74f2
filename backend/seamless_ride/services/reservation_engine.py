"""
Reservation engine: validates a booking request and commits it through the
seat ledger.

Validation runs in a fixed order and stops at the first failure:

  1. no user                      -> UNAUTHENTICATED
  2. no seats                     -> NO_SEATS_SELECTED
  3. more than the per-request cap -> TOO_MANY_SEATS
  4. seat outside [1, capacity]   -> INVALID_SEAT (first offending seat)
  5. same seat twice              -> INVALID_SEAT (the repeated seat)

A request that passes is handed to SeatLedger.try_confirm. A seat conflict
is terminal for the request: the engine never retries, the caller picks
other seats and resubmits.
"""

import time
from typing import Optional, Sequence

from seamless_ride.core.exceptions import (
    BookingError,
    InvalidSeatError,
    NoSeatsSelectedError,
    SeatAlreadyBookedError,
    SeatConflictError,
    TooManySeatsError,
    UnauthenticatedError,
)
from seamless_ride.core.logging import get_logger
from seamless_ride.core.metrics import record_reservation_attempt, reservation_latency
from seamless_ride.schemas.reservation import ReservationBatch
from seamless_ride.services.seat_ledger import SeatLedger

logger = get_logger(__name__)

SEAT_CAPACITY = 18
MAX_SEATS_PER_RESERVATION = 2


class ReservationEngine:
    def __init__(
        self,
        ledger: SeatLedger,
        capacity: int = SEAT_CAPACITY,
        max_seats: int = MAX_SEATS_PER_RESERVATION,
    ):
        self.ledger = ledger
        self.capacity = capacity
        self.max_seats = max_seats

    def validate(self, user_id: Optional[int], seat_numbers: Sequence[int]) -> list[int]:
        """Check a request against policy; returns the seats in request order."""
        if user_id is None:
            raise UnauthenticatedError()

        seats = list(seat_numbers)
        if not seats:
            raise NoSeatsSelectedError()

        if len(seats) > self.max_seats:
            raise TooManySeatsError(
                f"At most {self.max_seats} seats per reservation, got {len(seats)}"
            )

        for seat in seats:
            if seat < 1 or seat > self.capacity:
                raise InvalidSeatError(
                    f"Seat {seat} does not exist; seats are numbered 1 to {self.capacity}",
                    seat=seat,
                )

        seen: set[int] = set()
        for seat in seats:
            if seat in seen:
                raise InvalidSeatError(f"Seat {seat} was selected more than once", seat=seat)
            seen.add(seat)

        return seats

    async def reserve(
        self,
        user_id: Optional[int],
        trip_id: int,
        seat_numbers: Sequence[int],
    ) -> ReservationBatch:
        started = time.perf_counter()
        try:
            seats = self.validate(user_id, seat_numbers)
            try:
                batch = await self.ledger.try_confirm(trip_id, seats, user_id)
            except SeatConflictError as e:
                raise SeatAlreadyBookedError(
                    f"Seat {e.seats[0]} is already taken",
                    seat=e.seats[0],
                    seats=e.seats,
                ) from e
        except BookingError as e:
            record_reservation_attempt(e.code)
            logger.info(
                "reservation_rejected",
                code=e.code,
                user_id=user_id,
                trip_id=trip_id,
                seats=list(seat_numbers),
                seat=e.seat,
            )
            raise
        finally:
            reservation_latency.observe(time.perf_counter() - started)

        record_reservation_attempt("confirmed")
        logger.info(
            "reservation_confirmed",
            user_id=user_id,
            trip_id=trip_id,
            seats=batch.seat_numbers,
            reservation_ids=batch.reservation_ids,
        )
        return batch
