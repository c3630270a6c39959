"""Route classified outcomes: log everything, dead-letter the non-retryable ones."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from core.logging.utilities import log_exception
from replicator import metrics
from replicator.schemas.envelope import DeadLetterEnvelope
from replicator.schemas.operations import Outcome, OutcomeStatus, Upsert, WriteOperation

logger = logging.getLogger(__name__)


class DeadLetterSink(Protocol):
    async def send(self, envelope: DeadLetterEnvelope) -> None:
        ...


@dataclass
class RouteSummary:
    succeeded: int = 0
    dead_lettered: int = 0
    dead_letter_failures: int = 0
    retryable: int = 0

    @property
    def non_retryable(self) -> int:
        return self.dead_lettered + self.dead_letter_failures


class FailureRouter:
    """
    Walk every outcome once, in order.

    Non-retryable outcomes become a ``DeadLetterEnvelope`` (with the original
    document for upserts) and are enqueued one at a time. An enqueue failure is
    logged and counted but never stops the walk. Retryable outcomes are logged
    and counted so the caller can ask for redelivery of the batch.
    """

    def __init__(self, sink: DeadLetterSink, log: logging.Logger | None = None):
        self._sink = sink
        self._log = log or logger

    async def route(
        self,
        outcomes: Sequence[Outcome],
        operations: Sequence[WriteOperation],
    ) -> RouteSummary:
        summary = RouteSummary()

        for outcome in outcomes:
            metrics.record_outcome(outcome.op_kind.value, outcome.status_class.value)

            if outcome.status_class is OutcomeStatus.SUCCESS:
                summary.succeeded += 1
            elif outcome.status_class is OutcomeStatus.RETRYABLE:
                summary.retryable += 1
                self._log.warning(
                    "Operation failed with retryable status, batch needs redelivery",
                    extra=self._failure_fields(outcome),
                )
            else:
                delivered = await self._dead_letter(outcome, operations)
                if delivered:
                    summary.dead_lettered += 1
                else:
                    summary.dead_letter_failures += 1

        if summary.non_retryable:
            self._log.error(
                f"{summary.non_retryable} out of {len(outcomes)} requests failed with non-retryable status",
                extra={
                    "dead_lettered": summary.dead_lettered,
                    "dead_letter_failures": summary.dead_letter_failures,
                    "batch_size": len(outcomes),
                },
            )
        return summary

    @staticmethod
    def _failure_fields(outcome: Outcome) -> dict:
        return {
            "document_id": outcome.id,
            "sequence_number": outcome.sequence_number,
            "op_kind": outcome.op_kind.value,
            "index_name": outcome.index,
            "item_index": outcome.position,
            "http_status": outcome.http_status,
            "status_class": outcome.status_class.value,
            "cause": outcome.cause,
        }

    @staticmethod
    def _source_document(outcome: Outcome, operations: Sequence[WriteOperation]):
        if outcome.source_document is not None:
            return outcome.source_document
        if 0 <= outcome.position < len(operations):
            operation = operations[outcome.position]
            if isinstance(operation, Upsert):
                return operation.document
        return None

    async def _dead_letter(
        self, outcome: Outcome, operations: Sequence[WriteOperation]
    ) -> bool:
        self._log.error(
            "Operation rejected by search engine, routing to dead-letter sink",
            extra=self._failure_fields(outcome),
        )
        envelope = DeadLetterEnvelope.from_outcome(
            outcome, source_document=self._source_document(outcome, operations)
        )
        try:
            await self._sink.send(envelope)
        except Exception as e:
            metrics.record_dead_letter("failed")
            log_exception(
                self._log,
                e,
                "Dead-letter enqueue failed, continuing with remaining outcomes",
                document_id=outcome.id,
                item_index=outcome.position,
                index_name=outcome.index,
            )
            return False

        metrics.record_dead_letter("sent")
        return True
