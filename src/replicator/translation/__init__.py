"""Change record → write operation translation."""

from replicator.translation.batch import BatchPlan, build_operations, plan_batch
from replicator.translation.converter import convert, convert_map, convert_number
from replicator.translation.stream import ParsedBatch, parse_stream_event
from replicator.translation.translator import derive_document_id, translate

__all__ = [
    "convert",
    "convert_map",
    "convert_number",
    "derive_document_id",
    "translate",
    "BatchPlan",
    "plan_batch",
    "build_operations",
    "ParsedBatch",
    "parse_stream_event",
]
