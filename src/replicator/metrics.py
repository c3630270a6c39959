"""
Prometheus metrics for the replicator.

Collected in a dedicated registry so repeated imports in tests never
register the same collector twice on the global default registry.
"""

from prometheus_client import CollectorRegistry, Counter

REGISTRY = CollectorRegistry(auto_describe=True)

records_received = Counter(
    "replicator_records_received_total",
    "Change records delivered to the replicator",
    registry=REGISTRY,
)

translation_failures = Counter(
    "replicator_translation_failures_total",
    "Change records dropped because they could not be translated",
    registry=REGISTRY,
)

operation_outcomes = Counter(
    "replicator_operation_outcomes_total",
    "Bulk item outcomes by operation kind and status class",
    labelnames=["op_kind", "status_class"],
    registry=REGISTRY,
)

dead_letter_messages = Counter(
    "replicator_dead_letter_messages_total",
    "Dead-letter enqueue attempts by result",
    labelnames=["result"],
    registry=REGISTRY,
)

transport_errors = Counter(
    "replicator_transport_errors_total",
    "Bulk calls that could not be completed",
    registry=REGISTRY,
)


def record_outcome(op_kind: str, status_class: str) -> None:
    operation_outcomes.labels(op_kind=op_kind, status_class=status_class).inc()


def record_dead_letter(result: str) -> None:
    dead_letter_messages.labels(result=result).inc()


def get_sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    """Current value of a sample, 0.0 when it has not been recorded yet."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value or 0.0
