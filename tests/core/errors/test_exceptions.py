"""
Tests for exception hierarchy and error classification.
"""

from core.errors.exceptions import (
    ConfigurationError,
    ErrorCategory,
    PermanentError,
    PipelineError,
    RetryableBatchError,
    TransientError,
    TranslationError,
    TransportError,
    classify_http_status,
)


class TestErrorCategory:
    """Test ErrorCategory enum."""

    def test_all_categories_exist(self):
        assert ErrorCategory.TRANSIENT.value == "transient"
        assert ErrorCategory.AUTH.value == "auth"
        assert ErrorCategory.PERMANENT.value == "permanent"
        assert ErrorCategory.UNKNOWN.value == "unknown"


class TestPipelineError:
    """Test base PipelineError class."""

    def test_basic_error(self):
        err = PipelineError("Something went wrong")
        assert err.message == "Something went wrong"
        assert err.cause is None
        assert err.context == {}
        assert err.category == ErrorCategory.UNKNOWN

    def test_error_with_cause(self):
        cause = ValueError("Invalid value")
        err = PipelineError("Wrapper message", cause=cause)
        assert err.cause == cause
        assert str(err) == "Wrapper message | Caused by: Invalid value"


class TestBaseCategories:
    def test_transient_category(self):
        assert TransientError("x").category == ErrorCategory.TRANSIENT

    def test_permanent_category(self):
        assert PermanentError("x").category == ErrorCategory.PERMANENT


class TestDomainErrors:
    def test_configuration_error_lists_missing(self):
        err = ConfigurationError("Missing configuration values", missing=["search.host"])
        assert err.missing == ["search.host"]
        assert err.context == {"missing": ["search.host"]}
        assert err.category == ErrorCategory.PERMANENT

    def test_translation_error_message_carries_sequence_number(self):
        err = TranslationError("NewImage cannot be null", "111")
        assert str(err) == "NewImage cannot be null, sequenceNumber:111"
        assert err.reason == "NewImage cannot be null"
        assert err.sequence_number == "111"
        assert err.category == ErrorCategory.PERMANENT

    def test_transport_error_classifies_status(self):
        err = TransportError("rejected", http_status=401)
        assert err.http_status == 401
        assert err.context["error_category"] == "auth"
        assert err.category == ErrorCategory.TRANSIENT

    def test_transport_error_without_status(self):
        err = TransportError("connection refused")
        assert err.http_status is None
        assert "http_status" not in err.context

    def test_retryable_batch_error(self):
        err = RetryableBatchError(2, 5, context={"batch_id": "abc"})
        assert err.retryable == 2
        assert err.total == 5
        assert "2 out of 5" in str(err)
        assert err.category == ErrorCategory.TRANSIENT


class TestClassifyHttpStatus:
    def test_success_is_unknown(self):
        assert classify_http_status(200) == ErrorCategory.UNKNOWN

    def test_auth_statuses(self):
        assert classify_http_status(401) == ErrorCategory.AUTH
        assert classify_http_status(403) == ErrorCategory.AUTH

    def test_rate_limit_is_transient(self):
        assert classify_http_status(429) == ErrorCategory.TRANSIENT

    def test_client_errors_are_permanent(self):
        assert classify_http_status(400) == ErrorCategory.PERMANENT
        assert classify_http_status(409) == ErrorCategory.PERMANENT

    def test_server_errors_are_transient(self):
        assert classify_http_status(500) == ErrorCategory.TRANSIENT
        assert classify_http_status(503) == ErrorCategory.TRANSIENT
