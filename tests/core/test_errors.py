"""
Tests for vectorsync.core.errors.

Tests cover:
- Category and retryability defaults per error family
- Context fields folded from keyword arguments
- is_retryable for typed and untyped exceptions
"""

import pytest

from vectorsync.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ExecutorError,
    InvalidConfigError,
    JobDataError,
    MissingJobFieldError,
    PayloadNotFoundError,
    QueryError,
    TransientError,
    UnresolvableEntryError,
    UnsupportedJobTypeError,
    VectorSyncError,
    categorize_error,
    is_retryable,
)


class TestDefaults:
    @pytest.mark.parametrize(
        "cls",
        [JobDataError, MissingJobFieldError, UnresolvableEntryError, PayloadNotFoundError],
    )
    def test_data_errors_never_retryable(self, cls):
        err = cls("broken")
        assert err.retryable is False
        assert isinstance(err, JobDataError)

    def test_unsupported_job_type_message(self):
        err = UnsupportedJobTypeError("reindex", job_id=3)
        assert err.job_type == "reindex"
        assert "reindex" in str(err)
        assert err.context.job_id == 3
        assert err.retryable is False

    @pytest.mark.parametrize("cls", [TransientError, DatabaseConnectionError, ExecutorError])
    def test_transient_errors_retryable(self, cls):
        assert cls("later").retryable is True

    def test_database_connection_category(self):
        assert DatabaseConnectionError("x").category == ErrorCategory.DATABASE

    def test_query_error_not_retryable(self):
        err = QueryError("no such table")
        assert err.retryable is False
        assert err.category == ErrorCategory.DATABASE

    def test_override_retryable(self):
        assert ExecutorError("bad input", retryable=False).retryable is False

    def test_invalid_config(self):
        err = InvalidConfigError("entry_table", "x; DROP")
        assert isinstance(err, ConfigError)
        assert err.key == "entry_table"
        assert "entry_table" in str(err)


class TestContext:
    def test_known_fields_set_on_context(self):
        err = PayloadNotFoundError("gone", job_id=7, source_uuid="AB", table="payload_x")
        d = err.context.to_dict()
        assert d["job_id"] == 7
        assert d["source_uuid"] == "AB"
        assert d["table"] == "payload_x"

    def test_unknown_fields_go_to_metadata(self):
        err = VectorSyncError("x", attempt=2)
        assert err.context.metadata == {"attempt": 2}
        assert err.context.to_dict()["attempt"] == 2

    def test_cause_chained(self):
        cause = ValueError("inner")
        err = QueryError("outer", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "inner"

    def test_to_dict_shape(self):
        d = UnresolvableEntryError("no entry", job_id=1).to_dict()
        assert d["error_type"] == "UnresolvableEntryError"
        assert d["category"] == ErrorCategory.SOURCE.value
        assert d["retryable"] is False
        assert d["context"]["job_id"] == 1


class TestClassification:
    def test_typed_errors_answer_for_themselves(self):
        assert is_retryable(ExecutorError("x")) is True
        assert is_retryable(JobDataError("x")) is False

    def test_unknown_exceptions_retryable(self):
        assert is_retryable(RuntimeError("boom")) is True
        assert is_retryable(KeyError("k")) is True

    def test_categorize(self):
        assert categorize_error(ExecutorError("x")) == ErrorCategory.EXECUTOR
        assert categorize_error(RuntimeError("x")) == ErrorCategory.UNKNOWN
