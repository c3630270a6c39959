"""Parse a raw change-log event into change records."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from core.errors.exceptions import TranslationError
from replicator.schemas.records import ChangeRecord

logger = logging.getLogger(__name__)


@dataclass
class ParsedBatch:
    records: list[ChangeRecord] = field(default_factory=list)
    failures: list[TranslationError] = field(default_factory=list)


def _sequence_number(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        stream = raw.get("dynamodb")
        if isinstance(stream, Mapping):
            return stream.get("SequenceNumber")
    return None


def _summarize(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail.get("loc", ()))
        parts.append(f"{location}: {detail.get('msg')}" if location else detail.get("msg", ""))
    return "; ".join(parts)


def parse_stream_event(
    event: Mapping[str, Any],
    log: logging.Logger | None = None,
) -> ParsedBatch:
    """
    Parse ``event["Records"]`` in delivery order.

    A record that does not match the stream schema (unknown event name,
    malformed attribute value, more than one type tag) is logged and skipped;
    it would fail identically on redelivery.
    """
    log = log or logger
    parsed = ParsedBatch()

    for raw in event.get("Records") or []:
        try:
            if not isinstance(raw, Mapping):
                raise TypeError(f"record must be an object, got {type(raw).__name__}")
            parsed.records.append(ChangeRecord.from_stream_record(dict(raw)))
        except ValidationError as e:
            failure = TranslationError(
                f"Record does not match stream schema: {_summarize(e)}",
                _sequence_number(raw),
                cause=e,
            )
            parsed.failures.append(failure)
            log.error(
                "Failed to parse stream record, dropping it from the batch",
                extra={
                    "sequence_number": failure.sequence_number,
                    "reason": failure.reason,
                    "error_category": failure.category.value,
                },
            )
        except TypeError as e:
            failure = TranslationError(str(e), None, cause=e)
            parsed.failures.append(failure)
            log.error(
                "Failed to parse stream record, dropping it from the batch",
                extra={"reason": failure.reason, "error_category": failure.category.value},
            )

    return parsed
