"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- HTTP status classification
"""

from core.errors.exceptions import (
    ConfigurationError,
    # Enums
    ErrorCategory,
    PermanentError,
    # Base classes
    PipelineError,
    RetryableBatchError,
    TransientError,
    TranslationError,
    TransportError,
    # Classification utilities
    classify_http_status,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "TransientError",
    "PermanentError",
    # Domain errors
    "ConfigurationError",
    "TranslationError",
    "TransportError",
    "RetryableBatchError",
    # Classification utilities
    "classify_http_status",
]
