"""
Reservation error taxonomy.

Every rejection carries a stable reason code and, where it applies, the
offending seat so a client can highlight exactly which seat to deselect.
None of these are retried by the core; STORAGE_UNAVAILABLE is the only one a
caller may reasonably retry with backoff.
"""

from typing import Iterable, Optional, Sequence

from fastapi import Request, status
from fastapi.responses import JSONResponse

from seamless_ride.core.logging import get_logger

logger = get_logger(__name__)


class BookingError(Exception):
    code = "BOOKING_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Booking request rejected"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        seat: Optional[int] = None,
        seats: Sequence[int] = (),
    ):
        self.message = message or self.default_message
        self.seat = seat
        self.seats = tuple(seats) or ((seat,) if seat is not None else ())
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "detail": self.message,
            "seat": self.seat,
            "seats": list(self.seats),
        }


class UnauthenticatedError(BookingError):
    code = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Sign in to make a reservation"


class NoSeatsSelectedError(BookingError):
    code = "NO_SEATS_SELECTED"
    default_message = "Select at least one seat"


class TooManySeatsError(BookingError):
    code = "TOO_MANY_SEATS"
    default_message = "Too many seats in one reservation"


class InvalidSeatError(BookingError):
    code = "INVALID_SEAT"
    default_message = "Invalid seat number"


class SeatAlreadyBookedError(BookingError):
    code = "SEAT_ALREADY_BOOKED"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Seat is already taken"


class TripNotFoundError(BookingError):
    code = "TRIP_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Trip not found"

    def __init__(self, trip_id: int):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} not found")


class StorageUnavailableError(BookingError):
    code = "STORAGE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Booking storage is unavailable, try again shortly"


class SeatConflictError(Exception):
    """Raised by the seat ledger when requested seats are already confirmed."""

    def __init__(self, trip_id: int, seats: Iterable[int]):
        self.trip_id = trip_id
        self.seats = tuple(sorted(seats))
        super().__init__(f"Seats {list(self.seats)} on trip {trip_id} are already confirmed")


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("booking_error", code=exc.code, detail=exc.message)
    else:
        logger.info("booking_rejected", code=exc.code, detail=exc.message, seat=exc.seat)

    headers = {"Retry-After": "1"} if isinstance(exc, StorageUnavailableError) else None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
