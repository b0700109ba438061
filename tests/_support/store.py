"""Test helpers: controllable clock and a writer for the default source layout."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from vectorsync.core.connection import SqliteConnection

START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class SourceDB:
    """Writes rows into the default source layout."""

    def __init__(self, conn: SqliteConnection) -> None:
        self.conn = conn
        self._next_entry_id = 1
        self._types: dict[str, int] = {}

    def add_type(self, alias: str, payload_table: str | None = None) -> int:
        type_id = len(self._types) + 1
        table = payload_table if payload_table is not None else f"payload_{alias or 'none'}"
        self.conn.execute(
            "INSERT INTO source_type (id, alias, payload_table) VALUES (?, ?, ?)",
            (type_id, alias, table),
        )
        if table:
            self.conn.execute(
                f"CREATE TABLE IF NOT EXISTS {table} (id INTEGER PRIMARY KEY, title TEXT, body TEXT)"
            )
        self.conn.commit()
        self._types[alias] = type_id
        return type_id

    def add_entry(
        self,
        uuid: str,
        version: str,
        changed: str,
        *,
        alias: str = "contact",
        title: str | None = "Title",
        archived: int = 0,
        with_payload: bool = True,
    ) -> int:
        if alias not in self._types:
            self.add_type(alias)
        entry_id = self._next_entry_id
        self._next_entry_id += 1
        self.conn.execute(
            "INSERT INTO source_entry (id, uuid, version, type_id, archived, created, changed) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (entry_id, uuid, version, self._types[alias], archived, changed, changed),
        )
        if with_payload:
            table = self.payload_table(alias)
            if table:
                self.conn.execute(
                    f"INSERT INTO {table} (id, title, body) VALUES (?, ?, ?)",
                    (entry_id, title, f"body of {uuid}"),
                )
        self.conn.commit()
        return entry_id

    def payload_table(self, alias: str) -> str | None:
        row = self.conn.execute(
            "SELECT payload_table FROM source_type WHERE id = ?", (self._types[alias],)
        ).fetchone()
        return row["payload_table"] if row else None

    def update_entry(self, uuid: str, version: str, changed: str) -> None:
        self.conn.execute(
            "UPDATE source_entry SET version = ?, changed = ? WHERE uuid = ?",
            (version, changed, uuid),
        )
        self.conn.commit()

    def delete_entry(self, uuid: str) -> None:
        self.conn.execute("DELETE FROM source_entry WHERE uuid = ?", (uuid,))
        self.conn.commit()

    def entry_id(self, uuid: str) -> int:
        return int(self.conn.execute("SELECT id FROM source_entry WHERE uuid = ?", (uuid,)).fetchone()["id"])


def make_uuid(n: int) -> str:
    """Deterministic 32-char upper hex uuid."""
    return f"{n:032X}"


