"""
Trip model: a scheduled departure between two named locations on a date.

Key design decisions:
- Trips are immutable once seeded; nothing in the booking path updates them
- Seat capacity is a fleet-wide constant (18-seater vehicles), not a column
- Composite index on (origin, destination, departure_date) serves the
  equality search used by the trip catalog
"""

from sqlalchemy import Column, Integer, String, Date, Index, CheckConstraint

from seamless_ride.db.base import Base, CreatedAtMixin


class Trip(Base, CreatedAtMixin):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    departure_date = Column(Date, nullable=False)
    price = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_trip_price_non_negative"),
        Index("ix_trips_route_date", "origin", "destination", "departure_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id}, {self.origin} -> {self.destination}, "
            f"date={self.departure_date})>"
        )
