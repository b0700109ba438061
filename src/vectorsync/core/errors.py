"""
Structured error types for vectorsync.

Every failure that can reach a job-state transition is expressed as a
:class:`VectorSyncError` subclass.  The class carries the two facts the queue
needs to route it: which **category** the failure belongs to and whether the
job that hit it is **retryable**.

Manifesto:
    The claim/ack boundary must never leak exceptions.  Instead every failure
    becomes a job transition, and the transition is decided by the error:

    - **Infrastructure** (store unreachable, query failed): the run aborts,
      nothing is mutated, the scheduler simply tries again later.
    - **Data** (missing fields, unresolvable type, vanished payload row,
      unsupported job type): terminal.  Retrying a structurally invalid job
      cannot change the outcome.
    - **Transient/processing** (executor failed): retried up to the attempt
      ceiling, then terminal.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     VectorSyncError                          │
        │       (category, retryable, context, cause)                  │
        ├─────────────────────────────────────────────────────────────┤
        │  TransientError          JobDataError        ConfigError      │
        │  (retryable=True)        (VALIDATION)        (CONFIG)         │
        │       │                       │                   │            │
        │  DatabaseConnectionError  MissingJobFieldError InvalidConfig  │
        │  ExecutorError            UnsupportedJobType                  │
        │                           UnresolvableEntry                   │
        │  DatabaseError            PayloadNotFound                     │
        │  └ QueryError                                                 │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = PayloadNotFoundError("payload row vanished", job_id=42)
    >>> err.retryable
    False
    >>> err.context.job_id
    42

Tags:
    error-handling, exception-hierarchy, retry-logic, vectorsync
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    DATABASE = "DATABASE"
    NETWORK = "NETWORK"

    # Data errors (never retryable)
    VALIDATION = "VALIDATION"
    SOURCE = "SOURCE"

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"

    # Downstream processing
    EXECUTOR = "EXECUTOR"

    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging.

    Attributes:
        job_id: Queue job the error relates to.
        source_uuid: Source entity (upper-case hex) the job points at.
        collection_key: Logical vector collection.
        table: Table name involved (source payload table, queue table).
        metadata: Additional key-value pairs.
    """

    job_id: int | None = None
    source_uuid: str | None = None
    collection_key: str | None = None
    table: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["job_id", "source_uuid", "collection_key", "table"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class VectorSyncError(Exception):
    """
    Base exception for all vectorsync errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance.  Keyword arguments that are not part
    of the signature are folded into :class:`ErrorContext`, so the common
    case reads naturally::

        raise UnresolvableEntryError("type has no table", job_id=7)
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        **context_fields: Any,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if context_fields:
            self.with_context(**context_fields)

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> VectorSyncError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(VectorSyncError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """The shared store is unreachable (cannot open, locked, disk I/O)."""

    default_category = ErrorCategory.DATABASE


class ExecutorError(TransientError):
    """The downstream executor failed to process a work item."""

    default_category = ErrorCategory.EXECUTOR


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(VectorSyncError):
    """Database operation error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """SQL query failed (syntax, missing table, constraint)."""

    pass


# =============================================================================
# JOB DATA ERRORS (Never Retryable)
# =============================================================================


class JobDataError(VectorSyncError):
    """
    Structurally invalid job or unresolvable source data.

    Never retryable: the job row or the source it points at must be fixed
    (and the job re-enqueued) by an operator.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class UnsupportedJobTypeError(JobDataError):
    """Job carries a ``job_type`` other than ``upsert`` / ``delete``."""

    def __init__(self, job_type: str, **kwargs: Any):
        self.job_type = job_type
        super().__init__(f"unsupported job_type '{job_type}'", **kwargs)


class MissingJobFieldError(JobDataError):
    """Job is missing ``source_uuid`` or ``collection_key``."""

    pass


class UnresolvableEntryError(JobDataError):
    """Source entry or its owning type/table cannot be resolved."""

    default_category = ErrorCategory.SOURCE


class PayloadNotFoundError(JobDataError):
    """The payload row referenced by a source entry does not exist."""

    default_category = ErrorCategory.SOURCE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(VectorSyncError):
    """
    Configuration error.
    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Decide whether a failed work item should go back to ``pending``.

    Typed errors answer for themselves.  Anything else raised by an executor
    is treated as a processing failure and retried until the attempt ceiling.
    """
    if isinstance(error, VectorSyncError):
        return error.retryable
    return True


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, VectorSyncError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "VectorSyncError",
    # Transient
    "TransientError",
    "DatabaseConnectionError",
    "ExecutorError",
    # Database
    "DatabaseError",
    "QueryError",
    # Job data
    "JobDataError",
    "UnsupportedJobTypeError",
    "MissingJobFieldError",
    "UnresolvableEntryError",
    "PayloadNotFoundError",
    # Config
    "ConfigError",
    "InvalidConfigError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
