from seamless_ride.schemas.user import UserCreate, UserResponse, UserLogin, SessionResponse, MeResponse
from seamless_ride.schemas.trip import TripResponse, SeatMapResponse
from seamless_ride.schemas.reservation import (
    ReservationCreate,
    ReservationBatch,
    ReservationHistoryItem,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "SessionResponse", "MeResponse",
    "TripResponse", "SeatMapResponse",
    "ReservationCreate", "ReservationBatch", "ReservationHistoryItem",
]
