"""Submit a batch of write operations and collect per-operation outcomes."""

import logging
import time
from collections.abc import Sequence
from typing import Protocol

from core.errors.exceptions import TransportError
from replicator.indexing.classifier import OutcomeClassifier
from replicator.indexing.client import BulkItemResult
from replicator.schemas.operations import Outcome, OutcomeStatus, Upsert, WriteOperation

logger = logging.getLogger(__name__)


class BulkClient(Protocol):
    async def bulk(self, index: str, operations: Sequence[WriteOperation]) -> list[BulkItemResult]:
        ...


_LEVEL_BY_STATUS = {
    OutcomeStatus.SUCCESS: logging.INFO,
    OutcomeStatus.RETRYABLE: logging.WARNING,
    OutcomeStatus.NON_RETRYABLE: logging.ERROR,
}


class BatchExecutor:
    """
    Send the operation list as one bulk call.

    Returns one ``Outcome`` per operation in the same order. A ``TransportError``
    from the client is not caught: the whole batch failed and must be redelivered.
    """

    def __init__(
        self,
        client: BulkClient,
        index: str,
        classifier: OutcomeClassifier | None = None,
        log: logging.Logger | None = None,
    ):
        self._client = client
        self._index = index
        self._classifier = classifier or OutcomeClassifier()
        self._log = log or logger

    async def execute(self, operations: Sequence[WriteOperation]) -> list[Outcome]:
        if not operations:
            self._log.info("No operations to submit, skipping bulk request")
            return []

        self._log.info(
            f"Sending bulk request for {len(operations)} requests",
            extra={"batch_size": len(operations), "index_name": self._index},
        )
        start = time.perf_counter()
        results = await self._client.bulk(self._index, operations)
        duration_ms = (time.perf_counter() - start) * 1000

        if len(results) != len(operations):
            raise TransportError(
                f"Bulk response has {len(results)} items for {len(operations)} operations",
                context={"batch_size": len(operations)},
            )

        outcomes = [
            self._to_outcome(position, operation, result)
            for position, (operation, result) in enumerate(zip(operations, results))
        ]

        self._log.info(
            f"Executed bulk request for {len(operations)} requests",
            extra={
                "batch_size": len(operations),
                "index_name": self._index,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return outcomes

    def _to_outcome(
        self, position: int, operation: WriteOperation, result: BulkItemResult
    ) -> Outcome:
        status_class = self._classifier.classify(operation.op_kind, result.status)
        failed = status_class is not OutcomeStatus.SUCCESS

        source_document = None
        if status_class is OutcomeStatus.NON_RETRYABLE and isinstance(operation, Upsert):
            source_document = operation.document

        outcome = Outcome(
            id=result.id or operation.id,
            op_kind=operation.op_kind,
            index=result.index or self._index,
            position=position,
            status_class=status_class,
            http_status=result.status,
            cause=result.error if failed else None,
            source_document=source_document,
            sequence_number=operation.sequence_number,
        )

        self._log.log(
            _LEVEL_BY_STATUS[status_class],
            "Response received for operation",
            extra={
                "op_kind": outcome.op_kind.value,
                "index_name": outcome.index,
                "item_index": position,
                "document_id": outcome.id,
                "sequence_number": outcome.sequence_number,
                "http_status": outcome.http_status,
                "status_class": status_class.value,
                "cause": outcome.cause,
            },
        )
        return outcome
