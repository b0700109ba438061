"""Seen ledger repository — the ``embedding_seen`` table.

One row per source uuid.  The change scanner writes it through on every
observation; the deletion scanner anti-joins it against the live source to
find entities that vanished.  Once the source row is gone, this ledger is
the only record of which collection and version the entity had.

Tags:
    vectorsync, repository, ledger, deletion
"""

from __future__ import annotations

from vectorsync.core.models import SeenRecord
from vectorsync.core.repository import BaseRepository, safe_identifier


class SeenRepository(BaseRepository):
    """Reads and conditional writes for the seen ledger."""

    TABLE = "embedding_seen"

    COLUMNS = (
        "source_uuid, last_seen_version, last_seen_changed, last_seen_at, "
        "last_seen_collection_key, missing_since, delete_job_id, deleted_at"
    )

    def upsert(
        self,
        source_uuid: str,
        version: str,
        changed_at: str,
        collection_key: str,
        now: str,
    ) -> None:
        """Record an observation of *source_uuid*.

        Re-observing an entity clears any earlier missing/delete marks: it is
        live again, and a future disappearance must produce a new delete job.
        """
        sql = self.dialect.upsert(
            self.TABLE,
            [
                "source_uuid",
                "last_seen_version",
                "last_seen_changed",
                "last_seen_at",
                "last_seen_collection_key",
                "missing_since",
                "delete_job_id",
                "deleted_at",
            ],
            ["source_uuid"],
        )
        self.execute(
            sql,
            (source_uuid, version, changed_at, now, collection_key, None, None, None),
        )

    def get(self, source_uuid: str) -> SeenRecord | None:
        row = self.query_one(
            f"SELECT {self.COLUMNS} FROM {self.TABLE} WHERE source_uuid = {self.ph(1)}",
            (source_uuid,),
        )
        return SeenRecord.from_row(row) if row else None

    def find_vanished(
        self,
        entry_table: str,
        limit: int,
        *,
        uuid_column: str = "uuid",
    ) -> list[SeenRecord]:
        """Ledger rows not yet marked missing whose source row is gone.

        *entry_table* must live in the same database as the ledger.  Its
        uuid column is compared in normalized spelling, so dashed or
        lower-case source identifiers still match their ledger rows.
        """
        entry_table = safe_identifier(entry_table, key="entry_table")
        uuid_column = safe_identifier(uuid_column, key="uuid_column")
        cols = ", ".join(f"s.{c.strip()}" for c in self.COLUMNS.split(","))
        uuid_key = self.dialect.uuid_key(f"e.{uuid_column}")
        rows = self.query(
            f"SELECT {cols} FROM {self.TABLE} s "
            f"LEFT JOIN {entry_table} e ON {uuid_key} = s.source_uuid "
            f"WHERE e.{uuid_column} IS NULL AND s.missing_since IS NULL "
            f"ORDER BY s.source_uuid LIMIT {self.ph(1)}",
            (limit,),
        )
        return [SeenRecord.from_row(r) for r in rows]

    def mark_missing(self, source_uuid: str, now: str) -> bool:
        """Set ``missing_since`` unless already set.  True if this call won."""
        return (
            self.update(
                f"UPDATE {self.TABLE} SET missing_since = {self.ph(1)} "
                f"WHERE source_uuid = {self.ph(1)} AND missing_since IS NULL",
                (now, source_uuid),
            )
            > 0
        )

    def set_delete_job(self, source_uuid: str, job_id: int) -> None:
        self.update(
            f"UPDATE {self.TABLE} SET delete_job_id = {self.ph(1)} "
            f"WHERE source_uuid = {self.ph(1)}",
            (job_id, source_uuid),
        )

    def mark_deleted(self, source_uuid: str, collection_key: str, now: str) -> int:
        """Stamp ``deleted_at`` once the executor removed the vectors."""
        return self.update(
            f"UPDATE {self.TABLE} SET deleted_at = {self.ph(1)} "
            f"WHERE source_uuid = {self.ph(1)} AND last_seen_collection_key = {self.ph(1)}",
            (now, source_uuid, collection_key),
        )

    def count_missing(self) -> int:
        return int(
            self.scalar(
                f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE missing_since IS NOT NULL",
                default=0,
            )
            or 0
        )


__all__ = ["SeenRepository"]
