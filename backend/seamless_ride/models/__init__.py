from seamless_ride.models.user import User
from seamless_ride.models.trip import Trip
from seamless_ride.models.reservation import Reservation, ReservationStatus

__all__ = ["User", "Trip", "Reservation", "ReservationStatus"]
