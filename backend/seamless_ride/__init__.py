"""Seamless Ride: trip search and seat reservation API."""

__version__ = "1.0.0"
