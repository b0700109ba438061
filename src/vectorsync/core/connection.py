"""SQLite connection adapter and factory.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~vectorsync.core.protocols.Connection` protocol and translates
driver exceptions into the vectorsync error hierarchy, so queue code only
ever catches :class:`~vectorsync.core.errors.DatabaseError` /
:class:`~vectorsync.core.errors.DatabaseConnectionError`.

Usage::

    from vectorsync.core.connection import connect_sqlite

    conn = connect_sqlite("/var/lib/vectorsync/queue.db")
    conn.execute("SELECT COUNT(*) AS n FROM embedding_job")
    row = conn.fetchone()
    conn.close()
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from vectorsync.core.errors import DatabaseConnectionError, QueryError

# Messages sqlite reports when the store itself is unusable, as opposed to a
# bad statement against a healthy store.
_UNAVAILABLE_MARKERS = (
    "unable to open",
    "database is locked",
    "disk i/o error",
    "database or disk is full",
    "readonly database",
)


def _translate(exc: sqlite3.Error, sql: str = "") -> Exception:
    message = str(exc)
    if isinstance(exc, sqlite3.OperationalError) and any(
        marker in message.lower() for marker in _UNAVAILABLE_MARKERS
    ):
        return DatabaseConnectionError(message, cause=exc)
    return QueryError(message, cause=exc, sql=sql.strip()[:200])


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Maintains a single cursor so that ``execute`` / ``fetchone`` /
    ``fetchall`` operate on the same result set.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 30.0,
        row_factory: Any = sqlite3.Row,
    ) -> None:
        try:
            self._conn = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
        except sqlite3.Error as exc:
            raise DatabaseConnectionError(f"cannot open {path}: {exc}", cause=exc) from exc
        self._conn.row_factory = row_factory
        self._cursor = self._conn.cursor()
        self.path = path

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        try:
            self._cursor.execute(sql, params)
        except sqlite3.Error as exc:
            raise _translate(exc, sql) from exc
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise _translate(exc) from exc

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    # -- convenience -------------------------------------------------------

    def __enter__(self) -> SqliteConnection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        self.close()

    def __repr__(self) -> str:
        return f"SqliteConnection({self.path!r})"


def connect_sqlite(path: str | Path, *, timeout: float = 30.0) -> SqliteConnection:
    """Open (creating parent directories) a WAL-mode SQLite store.

    WAL lets scanners and workers in separate processes read while one of
    them writes; conditional updates still serialize on the write lock.
    """
    target = str(path)
    if target != ":memory:":
        resolved = Path(target).expanduser()
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DatabaseConnectionError(f"cannot create {resolved.parent}: {exc}", cause=exc) from exc
        target = str(resolved)
    conn = SqliteConnection(target, timeout=timeout)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    return conn


__all__ = ["SqliteConnection", "connect_sqlite"]
