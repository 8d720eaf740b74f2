"""
Per-trip claim strategy interface.
Allows swapping between different serialization mechanisms for bookings.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class TripClaimStrategy(ABC):
    """
    Interface for the exclusive claim the seat ledger takes on one trip.

    Implementations:
    - LocalTripClaim: asyncio lock per trip, single process
    - RedisTripClaim: Redis lock per trip, shared across workers

    Claims are scoped per trip; holding the claim for trip A never blocks
    a booking for trip B.
    """

    name: str = "abstract"

    @abstractmethod
    def hold(self, trip_id: int) -> AsyncContextManager[None]:
        """
        Hold the exclusive claim on a trip for the duration of an async with block.

        The claim is released on every exit path, including exceptions and
        task cancellation.

        Raises:
            StorageUnavailableError: the claim could not be acquired
        """
