"""Per-operation status classification."""

from collections.abc import Iterable

from replicator.schemas.operations import OpKind, OutcomeStatus

DEFAULT_NON_RETRYABLE_STATUSES = frozenset({400})


class OutcomeClassifier:
    """
    Map a bulk item status to success, non-retryable or retryable.

    - 2xx is success. A 404 on a delete is also success: the document is
      already absent, which is the state the delete asks for.
    - A status listed in ``non_retryable_statuses`` (by default only 400,
      the search engine's "bad request") fails identically on redelivery.
    - Anything else, including a missing status, is retryable.
    """

    def __init__(self, non_retryable_statuses: Iterable[int] = DEFAULT_NON_RETRYABLE_STATUSES):
        self.non_retryable_statuses = frozenset(non_retryable_statuses)

    def classify(self, op_kind: OpKind, http_status: int | None) -> OutcomeStatus:
        if http_status is None:
            return OutcomeStatus.RETRYABLE
        if 200 <= http_status < 300:
            return OutcomeStatus.SUCCESS
        if op_kind is OpKind.DELETE and http_status == 404:
            return OutcomeStatus.SUCCESS
        if http_status in self.non_retryable_statuses:
            return OutcomeStatus.NON_RETRYABLE
        return OutcomeStatus.RETRYABLE
