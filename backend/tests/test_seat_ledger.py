"""
Tests for the seat ledger: reads, atomic confirmation, the unique index
backstop and claim release on every exit path.
"""

import asyncio
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from seamless_ride.core.exceptions import (
    SeatConflictError,
    StorageUnavailableError,
    TripNotFoundError,
    UnauthenticatedError,
)
from seamless_ride.db.session import create_session_factory
from seamless_ride.models.reservation import Reservation, ReservationStatus
from seamless_ride.services.interfaces import LocalTripClaim
from seamless_ride.services.seat_ledger import SeatLedger


@pytest.fixture
def claim() -> LocalTripClaim:
    return LocalTripClaim()


@pytest.fixture
def ledger(session_factory, claim) -> SeatLedger:
    return SeatLedger(session_factory, claim)


async def _confirmed_row(db_session, trip_id: int, user_id: int, seat: int, status=ReservationStatus.CONFIRMED):
    db_session.add(
        Reservation(
            trip_id=trip_id,
            user_id=user_id,
            seat_number=seat,
            status=status.value,
            created_at=datetime.now(timezone.utc),
        )
    )
    await db_session.commit()


@pytest.mark.asyncio
async def test_occupied_seats_empty_trip(ledger: SeatLedger, test_trip):
    assert await ledger.occupied_seats(test_trip.id) == set()


@pytest.mark.asyncio
async def test_occupied_seats_is_repeatable(ledger: SeatLedger, test_user, test_trip):
    await ledger.try_confirm(test_trip.id, [2, 11], test_user.id)

    first = await ledger.occupied_seats(test_trip.id)
    second = await ledger.occupied_seats(test_trip.id)
    assert first == second == {2, 11}


@pytest.mark.asyncio
async def test_occupied_seats_ignores_other_statuses(ledger: SeatLedger, db_session, test_user, test_trip):
    await _confirmed_row(db_session, test_trip.id, test_user.id, 4, ReservationStatus.CANCELLED)
    await _confirmed_row(db_session, test_trip.id, test_user.id, 5, ReservationStatus.PENDING)

    assert await ledger.occupied_seats(test_trip.id) == set()
    batch = await ledger.try_confirm(test_trip.id, [4, 5], test_user.id)
    assert batch.seat_numbers == [4, 5]


@pytest.mark.asyncio
async def test_occupied_seats_scoped_to_trip(ledger: SeatLedger, test_user, test_trip, other_trip):
    await ledger.try_confirm(test_trip.id, [1], test_user.id)
    assert await ledger.occupied_seats(other_trip.id) == set()


@pytest.mark.asyncio
async def test_try_confirm_batch_shares_timestamp(ledger: SeatLedger, session_factory, test_user, test_trip):
    batch = await ledger.try_confirm(test_trip.id, [8, 3], test_user.id)

    assert batch.seat_numbers == [3, 8]
    async with session_factory() as session:
        rows = [await session.get(Reservation, rid) for rid in batch.reservation_ids]
    assert {row.seat_number for row in rows} == {3, 8}
    assert all(row.status == "confirmed" for row in rows)
    assert rows[0].created_at == rows[1].created_at


@pytest.mark.asyncio
async def test_conflict_names_every_taken_seat(ledger: SeatLedger, db_session, test_user, other_user, test_trip):
    await _confirmed_row(db_session, test_trip.id, other_user.id, 3)
    await _confirmed_row(db_session, test_trip.id, other_user.id, 4)

    with pytest.raises(SeatConflictError) as exc_info:
        await ledger.try_confirm(test_trip.id, [4, 3], test_user.id)

    assert exc_info.value.seats == (3, 4)
    assert exc_info.value.trip_id == test_trip.id


@pytest.mark.asyncio
async def test_unique_index_catches_bypassed_check(
    ledger: SeatLedger, db_session, monkeypatch, test_user, other_user, test_trip
):
    """If the in-transaction check is skipped, the partial unique index still refuses the seat."""
    await _confirmed_row(db_session, test_trip.id, other_user.id, 5)

    async def see_nothing(session, trip_id, seats):
        return set()

    monkeypatch.setattr(ledger, "_confirmed_among", see_nothing)

    with pytest.raises(SeatConflictError) as exc_info:
        await ledger.try_confirm(test_trip.id, [5, 6], test_user.id)

    assert exc_info.value.seats == (5,)
    # seat 6 was rolled back with the rest of the batch
    assert await ledger.occupied_seats(test_trip.id) == {5}


@pytest.mark.asyncio
async def test_unknown_trip_releases_claim(ledger: SeatLedger, claim: LocalTripClaim, test_user):
    with pytest.raises(TripNotFoundError):
        await ledger.try_confirm(424242, [1], test_user.id)
    assert claim.active_trips() == 0


@pytest.mark.asyncio
async def test_conflict_releases_claim(ledger: SeatLedger, claim: LocalTripClaim, test_user, test_trip):
    await ledger.try_confirm(test_trip.id, [1], test_user.id)
    with pytest.raises(SeatConflictError):
        await ledger.try_confirm(test_trip.id, [1], test_user.id)

    assert claim.active_trips() == 0
    # a fresh request on the same trip is not blocked
    batch = await asyncio.wait_for(ledger.try_confirm(test_trip.id, [2], test_user.id), timeout=5)
    assert batch.seat_numbers == [2]


@pytest.mark.asyncio
async def test_cancelled_waiter_releases_claim(ledger: SeatLedger, claim: LocalTripClaim, test_user, test_trip):
    """A request abandoned while waiting for the claim leaves nothing behind."""
    async with claim.hold(test_trip.id):
        waiter = asyncio.create_task(ledger.try_confirm(test_trip.id, [10], test_user.id))
        await asyncio.sleep(0.01)
        assert not waiter.done()
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

    assert claim.active_trips() == 0
    assert await ledger.occupied_seats(test_trip.id) == set()
    batch = await asyncio.wait_for(ledger.try_confirm(test_trip.id, [10], test_user.id), timeout=5)
    assert batch.seat_numbers == [10]


@pytest.mark.asyncio
async def test_claim_is_per_trip(ledger: SeatLedger, claim: LocalTripClaim, test_user, test_trip, other_trip):
    """Holding one trip's claim does not block bookings on another trip."""
    async with claim.hold(test_trip.id):
        batch = await asyncio.wait_for(ledger.try_confirm(other_trip.id, [1], test_user.id), timeout=5)
    assert batch.trip_id == other_trip.id


@pytest.mark.asyncio
async def test_empty_seat_set_is_a_programming_error(ledger: SeatLedger, test_user, test_trip):
    with pytest.raises(ValueError):
        await ledger.try_confirm(test_trip.id, [], test_user.id)


@pytest.mark.asyncio
async def test_storage_unavailable(tmp_path, claim: LocalTripClaim):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}", poolclass=NullPool
    )
    ledger = SeatLedger(create_session_factory(engine), claim)
    try:
        with pytest.raises(StorageUnavailableError):
            await ledger.occupied_seats(1)
        with pytest.raises(StorageUnavailableError):
            await ledger.try_confirm(1, [1], 1)
        assert claim.active_trips() == 0
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def fk_session_factory(settings, db_engine):
    """Second engine on the same database file with SQLite foreign keys enforced."""
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield create_session_factory(engine)
    await engine.dispose()


@pytest.mark.asyncio
async def test_unknown_user_is_unauthenticated(fk_session_factory, claim: LocalTripClaim, test_trip):
    ledger = SeatLedger(fk_session_factory, claim)

    with pytest.raises(UnauthenticatedError):
        await ledger.try_confirm(test_trip.id, [3, 4], 777)

    assert await ledger.occupied_seats(test_trip.id) == set()
    assert claim.active_trips() == 0


@pytest.mark.asyncio
async def test_deactivated_user_is_unauthenticated(ledger: SeatLedger, db_session, test_user, test_trip):
    test_user.is_active = False
    await db_session.commit()

    with pytest.raises(UnauthenticatedError):
        await ledger.try_confirm(test_trip.id, [3], test_user.id)
    assert await ledger.occupied_seats(test_trip.id) == set()


@pytest.mark.asyncio
async def test_foreign_key_failure_is_not_a_seat_conflict(
    fk_session_factory, claim: LocalTripClaim, monkeypatch, test_trip
):
    """An IntegrityError with every requested seat still free is a storage fault, not SEAT_ALREADY_BOOKED."""
    ledger = SeatLedger(fk_session_factory, claim)

    async def anyone_can_book(session, user_id):
        return True

    monkeypatch.setattr(ledger, "_user_can_book", anyone_can_book)

    with pytest.raises(StorageUnavailableError):
        await ledger.try_confirm(test_trip.id, [3], 777)

    assert await ledger.occupied_seats(test_trip.id) == set()
    assert claim.active_trips() == 0
