"""
Pydantic schemas for reservation requests, confirmed batches and history.
"""

from datetime import date, datetime

from pydantic import BaseModel


class ReservationCreate(BaseModel):
    trip_id: int
    # Policy (count, range, duplicates) is enforced by the reservation engine
    # so every rejection carries a stable reason code instead of a 422.
    seats: list[int]


class ReservationBatch(BaseModel):
    """Seats confirmed together by one reservation request."""

    reservation_ids: list[int]
    trip_id: int
    seat_numbers: list[int]
    user_id: int
    confirmed_at: datetime

    model_config = {"frozen": True}


class ReservationHistoryItem(BaseModel):
    id: int
    trip_id: int
    seat_number: int
    status: str
    created_at: datetime
    origin: str
    destination: str
    departure_date: date
    price: int
