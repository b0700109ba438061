"""
SQL-backed system of record.

:class:`SqlEntrySource` reads entries, their types, visibility, tags, names
and relations from tables living in the same database as the queue tables.
It implements every source-side protocol the queue consumes, so one
instance serves both scanners and claimers.

Default layout (table names configurable, column names fixed)::

    source_type      id, alias, payload_table
    source_entry     id, uuid, version, type_id, archived, created, changed
    source_access    entry_id, user_id, mode
    source_tag       entry_id, tag
    source_name      entry_id, lang_id, name
    source_relation  entry_id, peer_id            (peer_id → source_entry.id)

Entry uuids may be stored dashed, braced, lower-case or binary; every
lookup compares them through ``Dialect.uuid_key`` so the queue only ever
sees upper-case hex.  Table names are interpolated into SQL, so they are
validated as plain identifiers up front; every value is a bound parameter.

Examples:
    >>> src = SqlEntrySource(conn)
    >>> src.changed_since("1970-01-01 00:00:00", 100)
    [SourceRecord(uuid='0F8F…', version='A1', changed_at='2026-…', type_alias='contact')]

Tags:
    source, sql, adapter, vectorsync
"""

from __future__ import annotations

from typing import Any

from vectorsync.core.dialect import Dialect
from vectorsync.core.hashing import normalize_hex
from vectorsync.core.logging import get_logger
from vectorsync.core.models import ResolvedEntry, SourceRecord, TypeDescriptor
from vectorsync.core.normalize import normalize_name, normalize_ref_uuids, normalize_tags
from vectorsync.core.protocols import Connection
from vectorsync.core.repository import BaseRepository, safe_identifier

logger = get_logger(__name__)

_ENTRY_COLUMNS = {"id", "uuid", "version", "type_id", "archived", "created", "changed"}


class SqlEntrySource(BaseRepository):
    """Reader, resolver, access policy and annotations over SQL tables.

    Args:
        conn: Connection to the database holding the source tables.
        dialect: SQL dialect (SQLite by default).
        entry_table, type_table, access_table, tag_table, name_table,
        relation_table: Table names.
        public_user_id: ``user_id`` of the access row that makes an entry public.
        public_mode: ``mode`` of that access row.
    """

    uuid_column = "uuid"

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        entry_table: str = "source_entry",
        type_table: str = "source_type",
        access_table: str = "source_access",
        tag_table: str = "source_tag",
        name_table: str = "source_name",
        relation_table: str = "source_relation",
        public_user_id: int = 1,
        public_mode: str = "visitor",
    ) -> None:
        super().__init__(conn, dialect)
        self.entry_table = safe_identifier(entry_table, key="entry_table")
        self.type_table = safe_identifier(type_table, key="type_table")
        self.access_table = safe_identifier(access_table, key="access_table")
        self.tag_table = safe_identifier(tag_table, key="tag_table")
        self.name_table = safe_identifier(name_table, key="name_table")
        self.relation_table = safe_identifier(relation_table, key="relation_table")
        self.public_user_id = public_user_id
        self.public_mode = public_mode

    @classmethod
    def from_settings(cls, conn: Connection, settings: Any, dialect: Dialect | None = None) -> SqlEntrySource:
        return cls(
            conn,
            dialect,
            entry_table=settings.entry_table,
            type_table=settings.type_table,
            access_table=settings.access_table,
            tag_table=settings.tag_table,
            name_table=settings.name_table,
            relation_table=settings.relation_table,
            public_user_id=settings.public_user_id,
            public_mode=settings.public_mode,
        )

    # -- SourceReader --------------------------------------------------------

    def changed_since(self, cursor: str, limit: int) -> list[SourceRecord]:
        rows = self.query(
            f"SELECT e.uuid, {self.dialect.uuid_key('e.uuid')} AS uuid_key, e.version, e.changed, "
            f"t.alias AS type_alias "
            f"FROM {self.entry_table} e "
            f"JOIN {self.type_table} t ON t.id = e.type_id "
            f"WHERE e.changed > {self.ph(1)} "
            f"ORDER BY e.changed ASC, e.id ASC LIMIT {self.ph(1)}",
            (cursor, limit),
        )
        records = []
        for r in rows:
            uuid_key = r["uuid_key"] or ""
            if uuid_key != normalize_hex(uuid_key):
                # only pure hex keys match back in find_vanished and resolve_entry
                logger.warning("scan.row_skipped", reason="unsupported uuid spelling", uuid=r["uuid"])
                uuid_key = ""
            records.append(
                SourceRecord(
                    uuid=uuid_key,
                    version=normalize_hex(r["version"]),
                    changed_at=str(r["changed"]),
                    type_alias=r["type_alias"] or "",
                )
            )
        return records

    # -- RowResolver ---------------------------------------------------------

    def resolve_entry(self, uuid_hex: str) -> ResolvedEntry | None:
        uuid_hex = normalize_hex(uuid_hex)
        if not uuid_hex:
            return None
        row = self.query_one(
            f"SELECT e.*, t.alias AS type_alias, t.payload_table AS type_payload_table "
            f"FROM {self.entry_table} e "
            f"JOIN {self.type_table} t ON t.id = e.type_id "
            f"WHERE {self.dialect.uuid_key('e.uuid')} = {self.ph(1)} LIMIT 1",
            (uuid_hex,),
        )
        if row is None:
            return None

        extra = {
            k: v
            for k, v in row.items()
            if k not in _ENTRY_COLUMNS and k not in ("type_alias", "type_payload_table")
        }
        return ResolvedEntry(
            id=int(row["id"]),
            uuid=normalize_hex(row["uuid"]),
            version=normalize_hex(row["version"]),
            type=TypeDescriptor(
                id=int(row["type_id"]),
                alias=row["type_alias"] or "",
                table=(row["type_payload_table"] or "").strip(),
            ),
            created_at=row.get("created"),
            changed_at=row.get("changed"),
            archived=bool(row.get("archived")),
            extra=extra,
        )

    def load_payload(self, table: str, row_id: int) -> dict[str, Any] | None:
        table = safe_identifier(table, key="payload_table")
        return self.query_one(
            f"SELECT * FROM {table} WHERE id = {self.ph(1)} LIMIT 1",
            (int(row_id),),
        )

    # -- AccessPolicy --------------------------------------------------------

    def is_public(self, entry_id: int) -> bool:
        if entry_id <= 0:
            return False
        row = self.query_one(
            f"SELECT 1 AS ok FROM {self.access_table} "
            f"WHERE entry_id = {self.ph(1)} AND user_id = {self.ph(1)} AND mode = {self.ph(1)} "
            f"LIMIT 1",
            (entry_id, self.public_user_id, self.public_mode),
        )
        return row is not None

    # -- EntryAnnotations ----------------------------------------------------

    def tags(self, entry_id: int) -> list[str]:
        if entry_id <= 0:
            return []
        rows = self.query(
            f"SELECT tag FROM {self.tag_table} WHERE entry_id = {self.ph(1)} ORDER BY tag ASC",
            (entry_id,),
        )
        return normalize_tags(r["tag"] for r in rows)

    def related_uuids(self, entry_id: int) -> list[str]:
        if entry_id <= 0:
            return []
        rows = self.query(
            f"SELECT e.uuid FROM {self.relation_table} r "
            f"JOIN {self.entry_table} e ON e.id = r.peer_id "
            f"WHERE r.entry_id = {self.ph(1)} ORDER BY e.id ASC",
            (entry_id,),
        )
        return normalize_ref_uuids(r["uuid"] for r in rows)

    def display_name(self, entry_id: int) -> str | None:
        if entry_id <= 0:
            return None
        row = self.query_one(
            f"SELECT name FROM {self.name_table} WHERE entry_id = {self.ph(1)} "
            f"ORDER BY lang_id DESC LIMIT 1",
            (entry_id,),
        )
        return normalize_name(row["name"]) if row else None


# =============================================================================
# DDL (demo databases and tests)
# =============================================================================


def create_source_tables(conn: Connection, source: SqlEntrySource | None = None) -> None:
    """Create the default source layout (idempotent)."""
    src = source or SqlEntrySource(conn)
    statements = [
        f"""CREATE TABLE IF NOT EXISTS {src.type_table} (
            id INTEGER PRIMARY KEY,
            alias TEXT NOT NULL,
            payload_table TEXT
        )""",
        f"""CREATE TABLE IF NOT EXISTS {src.entry_table} (
            id INTEGER PRIMARY KEY,
            uuid TEXT NOT NULL UNIQUE,
            version TEXT NOT NULL,
            type_id INTEGER NOT NULL,
            archived INTEGER NOT NULL DEFAULT 0,
            created TEXT,
            changed TEXT NOT NULL
        )""",
        f"CREATE INDEX IF NOT EXISTS ix_{src.entry_table}_changed ON {src.entry_table} (changed)",
        f"CREATE INDEX IF NOT EXISTS ix_{src.entry_table}_uuid_key "
        f"ON {src.entry_table} ({src.dialect.uuid_key('uuid')})",
        f"""CREATE TABLE IF NOT EXISTS {src.access_table} (
            entry_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            mode TEXT NOT NULL
        )""",
        f"""CREATE TABLE IF NOT EXISTS {src.tag_table} (
            entry_id INTEGER NOT NULL,
            tag TEXT NOT NULL
        )""",
        f"""CREATE TABLE IF NOT EXISTS {src.name_table} (
            entry_id INTEGER NOT NULL,
            lang_id INTEGER NOT NULL DEFAULT 0,
            name TEXT
        )""",
        f"""CREATE TABLE IF NOT EXISTS {src.relation_table} (
            entry_id INTEGER NOT NULL,
            peer_id INTEGER NOT NULL
        )""",
    ]
    for statement in statements:
        conn.execute(statement)
    conn.commit()


__all__ = ["SqlEntrySource", "create_source_tables"]
