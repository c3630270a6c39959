"""Fold a delivered batch of change records into an ordered list of write operations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from core.errors.exceptions import TranslationError
from replicator.schemas.operations import WriteOperation
from replicator.schemas.records import ChangeRecord
from replicator.translation.translator import translate

logger = logging.getLogger(__name__)


@dataclass
class BatchPlan:
    """Operations in delivery order plus the records that were dropped."""

    operations: list[WriteOperation] = field(default_factory=list)
    failures: list[TranslationError] = field(default_factory=list)


def plan_batch(
    records: Iterable[ChangeRecord],
    log: logging.Logger | None = None,
) -> BatchPlan:
    """
    Translate every record, keeping successes and failures apart.

    A record that fails translation is logged and skipped; processing continues
    with the next one. Output order equals input order so that two operations
    on the same id are applied by the search engine in delivery order.
    """
    log = log or logger
    plan = BatchPlan()

    for record in records:
        try:
            operation = translate(record)
        except TranslationError as e:
            plan.failures.append(e)
            log.error(
                "Failed to translate record, dropping it from the batch",
                extra={
                    "sequence_number": e.sequence_number,
                    "reason": e.reason,
                    "error_category": e.category.value,
                },
            )
            continue

        plan.operations.append(operation)
        log.debug(
            "Translated record",
            extra={
                "sequence_number": record.sequence_number,
                "op_kind": operation.op_kind.value,
                "document_id": operation.id,
            },
        )

    return plan


def build_operations(
    records: Iterable[ChangeRecord],
    log: logging.Logger | None = None,
) -> list[WriteOperation]:
    return plan_batch(records, log).operations
