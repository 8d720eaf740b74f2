"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .trip_claim import TripClaimStrategy
from .local_claim import LocalTripClaim

__all__ = ['TripClaimStrategy', 'LocalTripClaim']
