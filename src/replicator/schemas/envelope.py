"""Dead-letter envelope persisted for operations the search engine rejected."""

from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from replicator.schemas.operations import OpKind, Outcome


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class DeadLetterEnvelope(BaseModel):
    """Schema for messages written to the dead-letter sink.

    Immutable once built. Consumed out-of-band by a remediation process,
    so the JSON body uses the same camelCase keys as the bulk API.

    Example:
        >>> envelope = DeadLetterEnvelope(
        ...     id="A",
        ...     op_kind=OpKind.INDEX,
        ...     index="products",
        ...     position=0,
        ...     cause="mapper_parsing_exception: failed to parse field [price]",
        ...     source_document={"price": "abc"},
        ... )
        >>> envelope.to_json()  # doctest: +SKIP
        '{"id":"A","opKind":"index",...}'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    id: str
    op_kind: OpKind = Field(alias="opKind")
    index: str
    position: int
    http_status: Optional[int] = Field(default=None, alias="httpStatus")
    cause: Optional[str] = None
    source_document: Optional[dict[str, Any]] = Field(default=None, alias="sourceDocument")
    sequence_number: Optional[str] = Field(default=None, alias="sequenceNumber")
    timestamp: str = Field(default_factory=_utc_now)

    @classmethod
    def from_outcome(
        cls,
        outcome: Outcome,
        source_document: Optional[dict[str, Any]] = None,
        timestamp: Optional[str] = None,
    ) -> "DeadLetterEnvelope":
        values: dict[str, Any] = {
            "id": outcome.id,
            "op_kind": outcome.op_kind,
            "index": outcome.index,
            "position": outcome.position,
            "http_status": outcome.http_status,
            "cause": outcome.cause,
            "source_document": (
                source_document if source_document is not None else outcome.source_document
            ),
            "sequence_number": outcome.sequence_number,
        }
        if timestamp is not None:
            values["timestamp"] = timestamp
        return cls(**values)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
