"""Dead-letter routing for operations that will never succeed on retry."""

from replicator.dlq.producer import DeadLetterError, DeadLetterProducer
from replicator.dlq.router import FailureRouter, RouteSummary

__all__ = [
    "DeadLetterProducer",
    "DeadLetterError",
    "FailureRouter",
    "RouteSummary",
]
