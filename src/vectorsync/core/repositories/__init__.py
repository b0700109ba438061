"""Repositories for the vectorsync queue tables.

Each repository class extends :class:`BaseRepository` and provides
typed, dialect-aware access to one table.  Scanners, the claimer and the
operations layer go through these classes instead of inline SQL.

Architecture::

    ┌────────────────────────────────────────────────────────────────┐
    │  queue/scanner.py, queue/claimer.py, queue/acker.py, ops/jobs │
    └────────────────────────────┬───────────────────────────────────┘
                                 │ uses
                                 ▼
    ┌────────────────────────────────────────────────────────────────┐
    │  vectorsync.core.repositories  (this package)                  │
    │                                                                │
    │  jobs.py     — JobRepository   (embedding_job)                 │
    │  seen.py     — SeenRepository  (embedding_seen)                │
    │  _helpers.py — _build_where                                    │
    └────────────────────────────────────────────────────────────────┘

Checkpoints are handled by :class:`vectorsync.core.checkpoint.CheckpointStore`.

Tags:
    repository, sql, queue, vectorsync
"""

from .jobs import JobRepository
from .seen import SeenRepository

__all__ = [
    "JobRepository",
    "SeenRepository",
]
