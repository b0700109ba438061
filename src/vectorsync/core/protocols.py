"""
Canonical protocol definitions for vectorsync.

The queue touches the outside world through a handful of narrow shapes.
Everything that is not the queue itself (the system of record, the access
rules, the embedding executor) is a protocol here, so scanners and claimers
depend on shape, not implementation, and tests plug in plain fakes.

Architecture:
    ::

        protocols.py
        ├── Connection         — sync DB protocol (sqlite3 adapter)
        ├── SourceReader       — changed rows since a cursor
        ├── RowResolver        — uuid → entry + type, (table, id) → payload row
        ├── AccessPolicy       — is entity X publicly visible
        ├── EntryAnnotations   — tags, related uuids, display name
        └── EmbeddingExecutor  — consumes WorkItems (external)

    The default implementation of the four source-side protocols is
    :class:`vectorsync.source.sql.SqlEntrySource`.

Tags:
    protocol, connection, source, executor, vectorsync, contracts
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vectorsync.core.models import ResolvedEntry, SourceRecord, WorkItem

# ---------------------------------------------------------------------------
# Database Connection Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface.

    ``execute`` returns a DB-API cursor; repositories read ``rowcount`` from
    it to learn whether a conditional update won.

    ::

        execute(sql, params)   → cursor
        fetchone() / fetchall()
        commit() / rollback()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


# ---------------------------------------------------------------------------
# Source-side collaborators
# ---------------------------------------------------------------------------


@runtime_checkable
class SourceReader(Protocol):
    """Incremental reader over the system of record."""

    def changed_since(self, cursor: str, limit: int) -> list[SourceRecord]:
        """Rows with ``changed_at > cursor``, oldest first, at most ``limit``."""
        ...


@runtime_checkable
class RowResolver(Protocol):
    """Resolves a uuid to its live entry and an entry to its payload row."""

    def resolve_entry(self, uuid_hex: str) -> ResolvedEntry | None:
        """Live entry with its owning type, or ``None`` if it is gone."""
        ...

    def load_payload(self, table: str, row_id: int) -> dict[str, Any] | None:
        """Full payload row, or ``None`` if the row does not exist."""
        ...


@runtime_checkable
class AccessPolicy(Protocol):
    """Answers "is entity X publicly visible"."""

    def is_public(self, entry_id: int) -> bool: ...


@runtime_checkable
class EntryAnnotations(Protocol):
    """Tag, relation and naming lookups for one entry."""

    def tags(self, entry_id: int) -> list[str]: ...

    def related_uuids(self, entry_id: int) -> list[str]: ...

    def display_name(self, entry_id: int) -> str | None: ...


# ---------------------------------------------------------------------------
# Downstream executor
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingExecutor(Protocol):
    """Computes embeddings / writes or deletes vectors for one work item.

    Returns normally on success; raises on failure.  Raise a
    :class:`~vectorsync.core.errors.VectorSyncError` with ``retryable=False``
    to fail the job terminally; any other exception is retried.
    """

    def execute(self, item: WorkItem) -> None: ...


__all__ = [
    "Connection",
    "SourceReader",
    "RowResolver",
    "AccessPolicy",
    "EntryAnnotations",
    "EmbeddingExecutor",
]
