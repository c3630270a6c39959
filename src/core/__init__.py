"""
Core library: infrastructure-agnostic building blocks for the replicator.

Modules:
    errors      - Error classification and exception hierarchy
    logging     - Structured JSON logging with batch context
    utils       - JSON serialization helpers
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
