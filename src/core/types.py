"""
Core types shared across modules.

Kept in one place so every package compares the same enum class
(comparing members of two different enum classes always returns False).
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed when the batch is redelivered
                   (e.g., connection resets, timeouts, 429/503 responses)
        AUTH: Authentication or authorization failures against a collaborator
              (e.g., 401 from the search engine)
        PERMANENT: Failures that reproduce identically on redelivery
                   (e.g., malformed records, mapping conflicts, bad configuration)
        UNKNOWN: Unclassified errors, treated as retryable
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
