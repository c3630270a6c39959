"""Schemas for change records, write operations and dead-letter envelopes."""

from replicator.schemas.envelope import DeadLetterEnvelope
from replicator.schemas.operations import (
    Delete,
    OpKind,
    Outcome,
    OutcomeStatus,
    Upsert,
    WriteOperation,
)
from replicator.schemas.records import ChangeRecord, EventKind, TypedValue

__all__ = [
    "TypedValue",
    "EventKind",
    "ChangeRecord",
    "OpKind",
    "Upsert",
    "Delete",
    "WriteOperation",
    "OutcomeStatus",
    "Outcome",
    "DeadLetterEnvelope",
]
