"""vectorsync core -- queue primitives with no knowledge of the scanners.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Error hierarchy (VectorSyncError, TransientError, JobDataError)
        enums.py           JobType, JobState
        models.py          SourceRecord, Job, SeenRecord, WorkItem, ...
        protocols.py       Connection, SourceReader, RowResolver, EmbeddingExecutor
        timestamps.py      Fixed-format UTC text timestamps
        hashing.py         Hex normalization, content hash
        normalize.py       Tag / related-uuid / name normalization

    Layer 2 -- Storage
        dialect.py         SQLite SQL fragments (upsert, uuid key)
        connection.py      SQLite adapter with error translation
        repository.py      BaseRepository, safe_identifier
        repositories/      JobRepository, SeenRepository
        checkpoint.py      CheckpointStore (forward-only cursor)
        schema.py          Queue table DDL + create_tables()

    Layer 3 -- Runtime
        settings.py        VectorSyncSettings (pydantic-settings)
        logging.py         structlog configuration
"""

from vectorsync.core.enums import JobState, JobType
from vectorsync.core.errors import (
    ErrorCategory,
    JobDataError,
    TransientError,
    VectorSyncError,
    is_retryable,
)
from vectorsync.core.models import Job, SourceRecord, WorkItem

__all__ = [
    "ErrorCategory",
    "Job",
    "JobDataError",
    "JobState",
    "JobType",
    "SourceRecord",
    "TransientError",
    "VectorSyncError",
    "WorkItem",
    "is_retryable",
]
