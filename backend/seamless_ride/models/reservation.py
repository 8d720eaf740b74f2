"""
Reservation model: one row per (trip, seat) claimed by a user.

Key design decisions:
- Partial unique index on (trip_id, seat_number) WHERE status = 'confirmed'
  is the storage-level guarantee that a seat is confirmed at most once
- Confirmed rows are append-only history; a cancellation would be a new
  compensating row, never an update
- created_at is set by the ledger so every seat in one batch shares the
  same confirmation timestamp
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint, text

from seamless_ride.db.base import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seat_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=ReservationStatus.CONFIRMED.value)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("seat_number > 0", name="check_reservation_seat_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="check_reservation_status",
        ),
        Index(
            "uq_reservations_trip_seat_confirmed",
            "trip_id",
            "seat_number",
            unique=True,
            postgresql_where=text("status = 'confirmed'"),
            sqlite_where=text("status = 'confirmed'"),
        ),
        Index("ix_reservations_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, trip={self.trip_id}, seat={self.seat_number}, "
            f"user={self.user_id}, status={self.status})>"
        )
