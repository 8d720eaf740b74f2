"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['outcome']  # confirmed or an error code such as SEAT_ALREADY_BOOKED
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

seats_confirmed = Counter(
    'seats_confirmed_total',
    'Seats confirmed across all trips'
)

# Per-trip claim metrics
claim_wait = Histogram(
    'trip_claim_wait_seconds',
    'Time spent waiting for the per-trip claim',
    ['strategy'],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

claim_failures = Counter(
    'trip_claim_failures_total',
    'Per-trip claims that could not be acquired',
    ['strategy']
)

# Storage metrics
unique_index_conflicts = Counter(
    'reservation_unique_index_conflicts_total',
    'Conflicts caught by the confirmed-seat unique index instead of the claim'
)

storage_errors = Counter(
    'storage_errors_total',
    'Storage failures reported to callers',
    ['component']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(outcome: str):
    """Record reservation outcome: "confirmed" or the rejection code."""
    reservation_attempts.labels(outcome=outcome).inc()


def record_claim_wait(strategy: str, seconds: float):
    claim_wait.labels(strategy=strategy).observe(seconds)


def record_storage_error(component: str):
    storage_errors.labels(component=component).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
