"""
Tests for the reservation engine: validation order, all-or-nothing batches
and mutual exclusion under concurrent requests.
"""

import asyncio

import pytest

from seamless_ride.core.exceptions import (
    InvalidSeatError,
    NoSeatsSelectedError,
    SeatAlreadyBookedError,
    TooManySeatsError,
    TripNotFoundError,
    UnauthenticatedError,
)
from seamless_ride.services.container import Services


@pytest.mark.asyncio
async def test_reserve_two_seats(services: Services, test_user, test_trip):
    """A valid request confirms both seats in one batch."""
    batch = await services.engine.reserve(test_user.id, test_trip.id, [5, 6])

    assert batch.trip_id == test_trip.id
    assert batch.user_id == test_user.id
    assert batch.seat_numbers == [5, 6]
    assert len(batch.reservation_ids) == 2
    assert await services.ledger.occupied_seats(test_trip.id) == {5, 6}


@pytest.mark.asyncio
async def test_overlapping_request_is_rejected_whole(services: Services, test_user, other_user, test_trip):
    """User 2 asking for [6, 7] after user 1 took [5, 6] gets seat 6 named and nothing held."""
    await services.engine.reserve(test_user.id, test_trip.id, [5, 6])

    with pytest.raises(SeatAlreadyBookedError) as exc_info:
        await services.engine.reserve(other_user.id, test_trip.id, [6, 7])

    assert exc_info.value.seat == 6
    assert exc_info.value.code == "SEAT_ALREADY_BOOKED"
    assert await services.ledger.occupied_seats(test_trip.id) == {5, 6}


@pytest.mark.asyncio
async def test_no_partial_commit_when_second_seat_taken(services: Services, test_user, other_user, test_trip):
    """Seat 3 stays free when seat 4 of the same request is already confirmed."""
    await services.engine.reserve(other_user.id, test_trip.id, [4])

    with pytest.raises(SeatAlreadyBookedError) as exc_info:
        await services.engine.reserve(test_user.id, test_trip.id, [3, 4])

    assert exc_info.value.seat == 4
    assert 3 not in await services.ledger.occupied_seats(test_trip.id)


@pytest.mark.asyncio
async def test_missing_user_is_unauthenticated(services: Services, test_trip):
    with pytest.raises(UnauthenticatedError):
        await services.engine.reserve(None, test_trip.id, [1])


@pytest.mark.asyncio
async def test_unauthenticated_checked_before_seats(services: Services, test_trip):
    """A missing user wins over every seat problem in the same request."""
    with pytest.raises(UnauthenticatedError):
        await services.engine.reserve(None, test_trip.id, [])


@pytest.mark.asyncio
async def test_session_for_deleted_user_is_unauthenticated(services: Services, test_trip):
    """A user id with no account behind it never reaches the seats."""
    with pytest.raises(UnauthenticatedError):
        await services.engine.reserve(777, test_trip.id, [3, 4])
    assert await services.ledger.occupied_seats(test_trip.id) == set()


@pytest.mark.asyncio
async def test_empty_seat_list(services: Services, test_user, test_trip):
    with pytest.raises(NoSeatsSelectedError):
        await services.engine.reserve(test_user.id, test_trip.id, [])


@pytest.mark.asyncio
async def test_three_seats_always_too_many(services: Services, test_user, test_trip):
    """Three seats fail on count even when every seat is free, and even if one is invalid."""
    with pytest.raises(TooManySeatsError):
        await services.engine.reserve(test_user.id, test_trip.id, [1, 2, 3])
    with pytest.raises(TooManySeatsError):
        await services.engine.reserve(test_user.id, test_trip.id, [1, 2, 99])

    assert await services.ledger.occupied_seats(test_trip.id) == set()


@pytest.mark.asyncio
@pytest.mark.parametrize("seat", [0, -1, 19, 100])
async def test_seat_outside_vehicle(services: Services, test_user, test_trip, seat):
    with pytest.raises(InvalidSeatError) as exc_info:
        await services.engine.reserve(test_user.id, test_trip.id, [1, seat])
    assert exc_info.value.seat == seat


@pytest.mark.asyncio
async def test_boundary_seats_are_valid(services: Services, test_user, test_trip):
    batch = await services.engine.reserve(test_user.id, test_trip.id, [1, 18])
    assert batch.seat_numbers == [1, 18]


@pytest.mark.asyncio
async def test_duplicate_seat_in_request(services: Services, test_user, test_trip):
    with pytest.raises(InvalidSeatError) as exc_info:
        await services.engine.reserve(test_user.id, test_trip.id, [7, 7])

    assert exc_info.value.seat == 7
    assert await services.ledger.occupied_seats(test_trip.id) == set()


@pytest.mark.asyncio
async def test_same_user_cannot_take_own_seat_twice(services: Services, test_user, test_trip):
    await services.engine.reserve(test_user.id, test_trip.id, [9])

    with pytest.raises(SeatAlreadyBookedError):
        await services.engine.reserve(test_user.id, test_trip.id, [9])


@pytest.mark.asyncio
async def test_unknown_trip(services: Services, test_user):
    with pytest.raises(TripNotFoundError):
        await services.engine.reserve(test_user.id, 99999, [1])


@pytest.mark.asyncio
async def test_fifty_concurrent_callers_one_seat(services: Services, test_user, test_trip):
    """50 concurrent requests for seat 1: exactly one wins, 49 are told the seat is taken."""
    results = await asyncio.gather(
        *(services.engine.reserve(test_user.id, test_trip.id, [1]) for _ in range(50)),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, SeatAlreadyBookedError)]
    assert len(successes) == 1
    assert len(conflicts) == 49
    assert all(c.seat == 1 for c in conflicts)
    assert await services.ledger.occupied_seats(test_trip.id) == {1}


@pytest.mark.asyncio
async def test_concurrent_overlapping_pairs(services: Services, test_user, other_user, test_trip):
    """Overlapping pairs racing for one trip never share a seat."""
    requests = [[1, 2], [2, 3], [3, 4], [4, 5], [5, 6], [1, 6]]
    results = await asyncio.gather(
        *(
            services.engine.reserve((test_user if i % 2 else other_user).id, test_trip.id, seats)
            for i, seats in enumerate(requests)
        ),
        return_exceptions=True,
    )

    confirmed = [seat for r in results if not isinstance(r, Exception) for seat in r.seat_numbers]
    assert len(confirmed) == len(set(confirmed))
    assert set(confirmed) == await services.ledger.occupied_seats(test_trip.id)
    assert all(
        isinstance(r, SeatAlreadyBookedError) for r in results if isinstance(r, Exception)
    )


@pytest.mark.asyncio
async def test_different_trips_do_not_conflict(services: Services, test_user, test_trip, other_trip):
    first, second = await asyncio.gather(
        services.engine.reserve(test_user.id, test_trip.id, [1]),
        services.engine.reserve(test_user.id, other_trip.id, [1]),
    )
    assert first.trip_id == test_trip.id
    assert second.trip_id == other_trip.id
