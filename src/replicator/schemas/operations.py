"""Write operations and per-operation outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class OpKind(str, Enum):
    """Bulk action names as the search engine spells them."""

    INDEX = "index"
    DELETE = "delete"


@dataclass(frozen=True)
class Upsert:
    """Create the document if absent, replace it if present."""

    op_kind: ClassVar[OpKind] = OpKind.INDEX

    id: str
    document: dict[str, Any] = field(default_factory=dict)
    # Log position of the source record, diagnostics only
    sequence_number: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Delete:
    """Remove the document; removing an absent id is a no-op."""

    op_kind: ClassVar[OpKind] = OpKind.DELETE

    id: str
    sequence_number: str | None = field(default=None, compare=False)


WriteOperation = Union[Upsert, Delete]


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    NON_RETRYABLE = "non_retryable"
    RETRYABLE = "retryable"


@dataclass(frozen=True)
class Outcome:
    """Result of one bulk item, aligned with the submitted operation at ``position``."""

    id: str
    op_kind: OpKind
    index: str
    position: int
    status_class: OutcomeStatus
    http_status: int | None = None
    cause: str | None = None
    source_document: dict[str, Any] | None = None
    sequence_number: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status_class is OutcomeStatus.SUCCESS
