"""
Unified exception hierarchy for the replicator.

Provides typed exceptions carrying an error category so each stage can decide
locally whether a failure drops one record, fails the whole batch, or is
routed to the dead-letter sink.
"""

# Import ErrorCategory from canonical source to avoid duplicate enum issues
from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all replicator errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Base categories
# =============================================================================


class TransientError(PipelineError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class PermanentError(PipelineError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Required configuration is missing or invalid. Fatal at startup."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message, context={"missing": list(missing or [])})
        self.missing = list(missing or [])


class TranslationError(PermanentError):
    """
    A single change record cannot be turned into a write operation.

    The same payload fails identically on redelivery, so the record is logged
    and dropped while the rest of the batch continues.
    """

    def __init__(
        self,
        reason: str,
        sequence_number: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            f"{reason}, sequenceNumber:{sequence_number}",
            cause=cause,
            context={"sequence_number": sequence_number},
        )
        self.reason = reason
        self.sequence_number = sequence_number


class TransportError(TransientError):
    """
    The batch call to the search engine could not be completed at all.

    Covers connection failures, timeouts, authentication failures and
    malformed batch requests. Always propagated so the whole batch is redelivered.
    """

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        context = dict(context or {})
        if http_status is not None:
            context.setdefault("http_status", http_status)
            context.setdefault("error_category", classify_http_status(http_status).value)
        super().__init__(message, cause, context)
        self.http_status = http_status


class RetryableBatchError(TransientError):
    """The batch finished with retryable per-operation outcomes and must be redelivered."""

    def __init__(self, retryable: int, total: int, context: dict | None = None):
        super().__init__(
            f"{retryable} out of {total} operations failed with retryable status",
            context=context,
        )
        self.retryable = retryable
        self.total = total


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code in (401, 403):
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if status_code in (400, 404, 405, 410, 413, 422):
        return ErrorCategory.PERMANENT  # Client errors, won't fix with retry

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT  # Other 4xx

    if status_code >= 500:
        return ErrorCategory.TRANSIENT  # Server errors, may recover

    return ErrorCategory.UNKNOWN
