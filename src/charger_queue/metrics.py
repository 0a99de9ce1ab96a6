"""Prometheus metrics for the charger queue."""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry, generate_latest

from .state.models import StateDocument

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

ACTIONS = Counter(
    "charger_queue_actions_total",
    "Actions handled, by action name and outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

WRITE_CONFLICTS = Counter(
    "charger_queue_write_conflicts_total",
    "Writes rejected because the stored document changed after it was read",
    registry=REGISTRY,
)

STORE_LATENCY = Histogram(
    "charger_queue_store_latency_seconds",
    "Time taken by backing store calls",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.0, 5.0, 10.0),
    registry=REGISTRY,
)

SPOTS_TOTAL = Gauge(
    "charger_queue_spots_total",
    "Total number of charging spots",
    registry=REGISTRY,
)

SPOTS_OCCUPIED = Gauge(
    "charger_queue_spots_occupied",
    "Number of occupied charging spots",
    registry=REGISTRY,
)

QUEUE_LENGTH = Gauge(
    "charger_queue_queue_length",
    "Number of users waiting in the queue",
    registry=REGISTRY,
)


def record_action(action: str, outcome: str) -> None:
    """Count a handled action."""
    ACTIONS.labels(action=action, outcome=outcome).inc()


def record_conflict() -> None:
    """Count a rejected conditional write."""
    WRITE_CONFLICTS.inc()


def observe_store_latency(operation: str, latency_seconds: float) -> None:
    """Record how long a store read or write took."""
    STORE_LATENCY.labels(operation=operation).observe(latency_seconds)


def update_state_gauges(state: StateDocument) -> None:
    """Update spot and queue gauges from a document."""
    SPOTS_TOTAL.set(len(state.spots))
    SPOTS_OCCUPIED.set(sum(1 for s in state.spots if s.user_id is not None))
    QUEUE_LENGTH.set(len(state.queue))


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)
