"""Base repository with dialect-aware database access.

Provides :class:`BaseRepository` — a base class that pairs a
:class:`~vectorsync.core.protocols.Connection` with a
:class:`~vectorsync.core.dialect.Dialect` so that the queue repositories
write portable SQL without referencing a specific driver.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from vectorsync.core.protocols│
    │   dialect: Dialect        ← from vectorsync.core.dialect           │
    │                                                                    │
    │   execute(sql, params)     → cursor                                │
    │   update(sql, params)      → affected row count                    │
    │   query(sql, params)       → list[dict]                            │
    │   query_one(sql, params)   → dict | None                           │
    │   insert_or_ignore(t, data) → rows inserted                        │
    └────────────────────────────────────────────────────────────────────┘

Tags:
    repository, database, abstraction, portability
"""

from __future__ import annotations

import re
from typing import Any

from vectorsync.core.dialect import Dialect, SQLiteDialect
from vectorsync.core.errors import InvalidConfigError
from vectorsync.core.protocols import Connection

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def safe_identifier(name: str, *, key: str = "table") -> str:
    """Return *name* if it is a plain SQL identifier, else raise.

    Table and column names cannot be bound as parameters; anything that is
    interpolated into SQL goes through this check first.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise InvalidConfigError(key, name, f"Unsafe SQL identifier for {key}: {name!r}")
    return name


class BaseRepository:
    """Dialect-aware base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect to use.  Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    # -- Convenience shortcuts ---------------------------------------------

    def ph(self, count: int) -> str:
        """Shortcut for ``self.dialect.placeholders(count)``.

        Embed directly in f-strings:

            f"SELECT * FROM t WHERE id = {self.ph(1)}"
        """
        return self.dialect.placeholders(count)

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        return self.conn.execute(sql, params)

    def update(self, sql: str, params: tuple = ()) -> int:
        """Execute a DML statement and return the affected row count.

        Conditional updates (``… WHERE state = 'pending'``) report 0 when a
        concurrent runner got there first.
        """
        cursor = self.conn.execute(sql, params)
        rowcount = getattr(cursor, "rowcount", -1)
        return rowcount if rowcount is not None and rowcount >= 0 else 0

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts."""
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []

        # sqlite3.Row converts directly
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            pass

        if hasattr(cursor, "description") and cursor.description:
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]

        return [{i: v for i, v in enumerate(row)} for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: tuple = (), default: Any = None) -> Any:
        """First column of the first row, or *default*."""
        row = self.query_one(sql, params)
        if not row:
            return default
        return next(iter(row.values()))

    # -- Insert helpers ----------------------------------------------------

    def insert_or_ignore(self, table: str, data: dict[str, Any]) -> int:
        """Insert unless a unique key already exists.  Returns rows inserted."""
        sql = self.dialect.insert_or_ignore(table, list(data.keys()))
        return self.update(sql, tuple(data.values()))

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()


__all__ = [
    "BaseRepository",
    "safe_identifier",
]
