"""
Metrics instrumentation for observability.
Prometheus-compatible counters for the booking core; exposition is left
to whatever process hosts the service (``prometheus_client.start_http_server``
or a framework integration).
"""

from prometheus_client import Counter, Histogram

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation creation attempts',
    ['status']  # success, conflict, invalid, not_found, error
)

reservation_latency = Histogram(
    'reservation_create_latency_seconds',
    'Reservation creation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

reservation_transitions = Counter(
    'reservation_transitions_total',
    'Reservation status transition attempts',
    ['action', 'result']  # confirm/cancel, applied/rejected
)

# Availability metrics
availability_checks = Counter(
    'availability_checks_total',
    'Vehicle availability checks',
    ['result']  # available, conflict
)

# Database metrics
schedule_retries = Counter(
    'vehicle_schedule_retry_attempts_total',
    'Vehicle schedule lock retries after a concurrent first-use insert'
)

customer_resolutions = Counter(
    'customer_resolutions_total',
    'Customer find-or-create outcomes',
    ['outcome']  # email, document, created, race_recovered
)


# Convenience functions for instrumentation
def record_reservation_attempt(status: str):
    """Record reservation attempt. Status: success, conflict, invalid, not_found, error"""
    reservation_attempts.labels(status=status).inc()


def record_transition(action: str, applied: bool):
    result = "applied" if applied else "rejected"
    reservation_transitions.labels(action=action, result=result).inc()


def record_availability_check(available: bool):
    result = "available" if available else "conflict"
    availability_checks.labels(result=result).inc()


def record_customer_resolution(outcome: str):
    customer_resolutions.labels(outcome=outcome).inc()
