"""
Pydantic schemas for trip search and seat availability.
"""

from datetime import date

from pydantic import BaseModel


class TripResponse(BaseModel):
    id: int
    origin: str
    destination: str
    departure_date: date
    price: int

    model_config = {"from_attributes": True}


class SeatMapResponse(BaseModel):
    trip_id: int
    capacity: int
    occupied: list[int]
    available: int
