"""Bulk submission to the search engine."""

from replicator.indexing.classifier import OutcomeClassifier
from replicator.indexing.client import BulkIndexClient, BulkItemResult
from replicator.indexing.executor import BatchExecutor

__all__ = [
    "BulkIndexClient",
    "BulkItemResult",
    "OutcomeClassifier",
    "BatchExecutor",
]
