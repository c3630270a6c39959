"""
Change-log batch handler.

Translates one delivered batch of change records into search-engine write
operations, submits them as a single bulk call, and routes the outcomes.
Invoked once per batch by the event-triggered runtime through ``lambda_handler``.
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from config.config import ReplicatorConfig, get_config
from core.errors.exceptions import (
    ConfigurationError,
    RetryableBatchError,
    TransportError,
)
from core.logging.context import clear_log_context, set_log_context
from core.logging.setup import generate_batch_id, setup_logging
from core.logging.utilities import log_exception
from replicator import metrics
from replicator.dlq.producer import DeadLetterProducer
from replicator.dlq.router import DeadLetterSink, FailureRouter
from replicator.indexing.classifier import OutcomeClassifier
from replicator.indexing.client import BulkIndexClient
from replicator.indexing.executor import BatchExecutor, BulkClient
from replicator.schemas.records import ChangeRecord
from replicator.translation.batch import plan_batch
from replicator.translation.stream import parse_stream_event

logger = logging.getLogger(__name__)

# Project root directory (where .env file is located)
# handler.py is at src/replicator/handler.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent


@dataclass
class BatchReport:
    """Counters for one invocation."""

    batch_id: str = ""
    records_received: int = 0
    translation_failures: int = 0
    operations_submitted: int = 0
    succeeded: int = 0
    dead_lettered: int = 0
    dead_letter_failures: int = 0
    retryable: int = 0

    @property
    def has_retryable(self) -> bool:
        return self.retryable > 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class StreamReplicator:
    """Owns the bulk client and dead-letter sink for the lifetime of the runtime."""

    def __init__(
        self,
        config: ReplicatorConfig,
        client: BulkClient | None = None,
        dead_letter_sink: DeadLetterSink | None = None,
        classifier: OutcomeClassifier | None = None,
        log: logging.Logger | None = None,
    ):
        self._config = config
        self._log = log or logger
        self._client = client if client is not None else BulkIndexClient(config.search)
        self._sink = (
            dead_letter_sink
            if dead_letter_sink is not None
            else DeadLetterProducer(config.dead_letter)
        )
        classifier = classifier or OutcomeClassifier(config.non_retryable_statuses)
        self._executor = BatchExecutor(self._client, config.search.index, classifier, self._log)
        self._router = FailureRouter(self._sink, self._log)

    async def __aenter__(self) -> "StreamReplicator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
        stop = getattr(self._sink, "stop", None)
        if stop is not None:
            await stop()

    async def handle_event(self, event: Mapping[str, Any]) -> BatchReport:
        """Parse a raw ``{"Records": [...]}`` event and process it as one batch."""
        batch_id = generate_batch_id()
        set_log_context(batch_id=batch_id, stage="parse")
        parsed = parse_stream_event(event, self._log)
        return await self.handle_records(
            parsed.records,
            parse_failures=len(parsed.failures),
            batch_id=batch_id,
        )

    async def handle_records(
        self,
        records: Iterable[ChangeRecord],
        parse_failures: int = 0,
        batch_id: str | None = None,
    ) -> BatchReport:
        """
        Translate, submit and route one batch.

        Raises:
            TransportError: the bulk call could not be completed; nothing was routed
        """
        records = list(records)
        report = BatchReport(
            batch_id=batch_id or generate_batch_id(),
            records_received=len(records) + parse_failures,
        )
        set_log_context(batch_id=report.batch_id, stage="translate")
        metrics.records_received.inc(report.records_received)

        plan = plan_batch(records, self._log)
        report.translation_failures = parse_failures + len(plan.failures)
        report.operations_submitted = len(plan.operations)
        metrics.translation_failures.inc(report.translation_failures)

        set_log_context(stage="execute")
        try:
            outcomes = await self._executor.execute(plan.operations)
        except TransportError as e:
            metrics.transport_errors.inc()
            log_exception(
                self._log,
                e,
                "Bulk request could not be completed, batch will be redelivered",
                batch_size=len(plan.operations),
                http_status=e.http_status,
            )
            raise

        set_log_context(stage="route")
        summary = await self._router.route(outcomes, plan.operations)
        report.succeeded = summary.succeeded
        report.dead_lettered = summary.dead_lettered
        report.dead_letter_failures = summary.dead_letter_failures
        report.retryable = summary.retryable

        self._log.info(
            "Batch processed",
            extra={
                "records_received": report.records_received,
                "records_failed": report.translation_failures,
                "operations_submitted": report.operations_submitted,
                "succeeded": report.succeeded,
                "dead_lettered": report.dead_lettered,
                "dead_letter_failures": report.dead_letter_failures,
                "retryable": report.retryable,
            },
        )
        return report


def _setup_environment() -> ReplicatorConfig:
    load_dotenv(PROJECT_ROOT / ".env")
    try:
        return get_config()
    except (ConfigurationError, FileNotFoundError) as e:
        # Logging is not configured yet; make sure the reason reaches stdout
        setup_logging(json_format=True)
        log_exception(logger, e, "Invalid replicator configuration, refusing to start",
                      level=logging.CRITICAL, include_traceback=False,
                      missing=getattr(e, "missing", None))
        raise


async def _run(config: ReplicatorConfig, event: Mapping[str, Any]) -> BatchReport:
    async with StreamReplicator(config) as replicator:
        return await replicator.handle_event(event)


def lambda_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    """
    Entry point for the event-triggered runtime.

    Returns the batch report when every operation reached a final state
    (success or dead-lettered).

    Raises:
        ConfigurationError: required configuration is missing (fatal, nothing processed)
        TransportError: the bulk call failed; the whole batch must be redelivered
        RetryableBatchError: some operations failed with a retryable status
    """
    config = _setup_environment()
    request_id = getattr(context, "aws_request_id", None)
    setup_logging(
        level=logging.getLevelName(config.log_level.upper()),
        json_format=config.json_logs,
        request_id=request_id,
    )

    start = time.perf_counter()
    try:
        report = asyncio.run(_run(config, event))
    finally:
        clear_log_context()

    logger.debug(
        "Invocation finished",
        extra={"duration_ms": round((time.perf_counter() - start) * 1000, 2)},
    )
    if report.has_retryable:
        raise RetryableBatchError(
            report.retryable,
            report.operations_submitted,
            context={"batch_id": report.batch_id},
        )
    return report.to_dict()
