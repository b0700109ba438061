"""SQL dialect fragments for the queue repositories.

Repositories build their statements from ``Dialect`` fragments
(placeholders, insert-or-ignore, upsert, DDL types, uuid matching) instead
of spelling driver-specific SQL inline, so the claim protocol is written
once against one contract.

Architecture::

    Repository code:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = d.insert_or_ignore("embedding_job", cols)               │
    │  sql = f"... WHERE job_id IN ({d.placeholders(len(ids))})"     │
    │  sql = f"... ON {d.uuid_key('e.uuid')} = s.source_uuid"        │
    │  conn.execute(sql, params)                                     │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
                   ┌────────────────────────┐
                   │ SQLite                 │
                   │ ?, ?, ?                │
                   │ INSERT OR IGNORE       │
                   │ upper(replace(...))    │
                   └────────────────────────┘

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'

Tags:
    dialect, sql, abstraction, database, vectorsync
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) valid for the target
    database.  Values are never interpolated; only placeholders are.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        """``INSERT … ON CONFLICT DO NOTHING`` (or equivalent)."""
        ...

    def upsert(
        self,
        table: str,
        columns: list[str],
        key_columns: list[str],
    ) -> str:
        """``INSERT … ON CONFLICT (keys) DO UPDATE SET …``"""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for an auto-incrementing integer primary key."""
        ...

    def uuid_key(self, column: str) -> str:
        """Expression spelling *column* the way ``normalize_hex`` does.

        Source tables may store identifiers dashed, braced, lower-case or
        binary; comparisons against the queue's upper-case hex go through
        this expression.
        """
        ...


# =========================================================================
# SQLite
# =========================================================================


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        return f"INSERT OR IGNORE INTO {table} ({cols}) VALUES ({ph})"

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        keys = ", ".join(key_columns)
        update_cols = [c for c in columns if c not in key_columns]
        updates = ", ".join(f"{c} = excluded.{c}" for c in update_cols)
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({ph}) "
            f"ON CONFLICT ({keys}) DO UPDATE SET {updates}"
        )

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def uuid_key(self, column: str) -> str:
        # deterministic, so it can back an expression index
        return (
            f"(CASE WHEN typeof({column}) = 'blob' THEN hex({column}) "
            f"ELSE upper(replace(replace(replace(trim({column}), '-', ''), '{{', ''), '}}', '')) END)"
        )


__all__ = [
    "Dialect",
    "SQLiteDialect",
]
