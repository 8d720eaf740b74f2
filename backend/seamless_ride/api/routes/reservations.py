"""
Reservation endpoints: confirm seats and list the caller's history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from seamless_ride.api.deps import get_optional_user_id, get_services
from seamless_ride.schemas.reservation import ReservationBatch, ReservationCreate, ReservationHistoryItem
from seamless_ride.services.container import Services

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=ReservationBatch, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation: ReservationCreate,
    user_id: Optional[int] = Depends(get_optional_user_id),
    services: Services = Depends(get_services),
):
    """
    Confirm up to two seats on a trip.

    All requested seats are confirmed together or not at all. If any seat is
    taken the response is 409 SEAT_ALREADY_BOOKED naming the seat, and none
    of the other requested seats are held.
    """
    return await services.engine.reserve(user_id, reservation.trip_id, reservation.seats)


@router.get("/mine", response_model=list[ReservationHistoryItem])
async def my_reservations(
    user_id: Optional[int] = Depends(get_optional_user_id),
    services: Services = Depends(get_services),
):
    rows = await services.history.reservations_for(user_id)
    return [
        ReservationHistoryItem(
            id=reservation.id,
            trip_id=reservation.trip_id,
            seat_number=reservation.seat_number,
            status=reservation.status,
            created_at=reservation.created_at,
            origin=trip.origin,
            destination=trip.destination,
            departure_date=trip.departure_date,
            price=trip.price,
        )
        for reservation, trip in rows
    ]
