"""
In-process claim strategy - one asyncio.Lock per trip.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from seamless_ride.services.interfaces.trip_claim import TripClaimStrategy


class _ClaimSlot:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class LocalTripClaim(TripClaimStrategy):
    """
    Serializes bookings per trip within one event loop.

    Use when:
    - A single worker process serves the API
    - Tests and local development

    Multi-worker deployments still stay correct through the trip row lock and
    the confirmed-seat unique index, but should prefer RedisTripClaim.
    """

    name = "local"

    def __init__(self):
        self._slots: dict[int, _ClaimSlot] = {}

    @asynccontextmanager
    async def hold(self, trip_id: int) -> AsyncIterator[None]:
        slot = self._slots.get(trip_id)
        if slot is None:
            slot = self._slots[trip_id] = _ClaimSlot()
        slot.holders += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.holders -= 1
            if slot.holders == 0:
                del self._slots[trip_id]

    def active_trips(self) -> int:
        """Number of trips with a held or awaited claim."""
        return len(self._slots)
