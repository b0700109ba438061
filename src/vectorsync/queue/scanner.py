"""
Producers: change scanning and deletion scanning.

Both scanners only ever *add* work.  Every write they make is either an
idempotent upsert (seen ledger), an insert-or-ignore (jobs), or a
conditional update whose guard makes a concurrent or repeated scan a no-op,
so re-running a scan over the same window produces no duplicate jobs.

Architecture:
    ::

        ChangeScanner.scan(limit, cursor)
          │ source.changed_since(cursor, limit)         oldest first
          │ for each row:
          │   seen.upsert(uuid, version, changed, coll)  write-through
          │   jobs.supersede_pending_upserts(...)        pending only
          │   jobs.enqueue(uuid, version, coll, upsert)  insert-or-ignore
          ▼
        ScanResult(processed, new_cursor)

        DeletionScanner.scan(limit)
          │ seen LEFT JOIN entry  → vanished, not yet missing
          │ for each row:
          │   seen.mark_missing(uuid)   guard: missing_since IS NULL
          │   jobs.enqueue(uuid, last_version, last_coll, delete)
          │   seen.set_delete_job(uuid, job_id)
          ▼
        count of delete jobs inserted

Tags:
    scanner, enqueue, incremental, deletion, vectorsync
"""

from __future__ import annotations

from dataclasses import dataclass

from vectorsync.core.enums import JobType
from vectorsync.core.hashing import normalize_hex
from vectorsync.core.logging import get_logger
from vectorsync.core.protocols import SourceReader
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.timestamps import Clock, format_ts, utc_now

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of one change scan."""

    processed: int
    new_cursor: str


def collection_key_for(type_alias: str | None, default: str = "default") -> str:
    """Collection a source type's entries are embedded into."""
    alias = (type_alias or "").strip()
    return alias or default


class ChangeScanner:
    """Turns changed source rows into upsert jobs.

    Args:
        jobs: Job repository.
        seen: Seen ledger repository (same connection as *jobs*).
        source: Incremental reader over the system of record.
        default_collection_key: Collection for entries with a blank type alias.
        priority: Priority stamped on new upsert jobs.
        clock: Source of "now".
    """

    def __init__(
        self,
        jobs: JobRepository,
        seen: SeenRepository,
        source: SourceReader,
        *,
        default_collection_key: str = "default",
        priority: int = 1,
        clock: Clock = utc_now,
    ) -> None:
        self.jobs = jobs
        self.seen = seen
        self.source = source
        self.default_collection_key = default_collection_key
        self.priority = priority
        self._clock = clock

    def scan(self, limit: int, cursor: str) -> ScanResult:
        rows = self.source.changed_since(cursor, limit)
        if not rows:
            return ScanResult(processed=0, new_cursor=cursor)

        new_cursor = cursor
        processed = 0
        enqueued = 0
        superseded = 0

        for record in rows:
            if record.changed_at and record.changed_at > new_cursor:
                new_cursor = record.changed_at

            uuid_hex = normalize_hex(record.uuid)
            version_hex = normalize_hex(record.version)
            if not uuid_hex or not version_hex:
                logger.warning(
                    "scan.row_skipped",
                    reason="missing uuid or version",
                    uuid=record.uuid,
                    changed_at=record.changed_at,
                )
                continue

            collection_key = collection_key_for(record.type_alias, self.default_collection_key)
            now = format_ts(self._clock())

            self.seen.upsert(uuid_hex, version_hex, record.changed_at, collection_key, now)
            superseded += self.jobs.supersede_pending_upserts(
                uuid_hex, collection_key, version_hex, now
            )
            enqueued += self.jobs.enqueue(
                uuid_hex,
                version_hex,
                collection_key,
                JobType.UPSERT,
                now,
                priority=self.priority,
            )
            self.jobs.commit()
            processed += 1

        logger.info(
            "scan.changes_done",
            rows=len(rows),
            processed=processed,
            enqueued=enqueued,
            superseded=superseded,
            cursor=new_cursor,
        )
        return ScanResult(processed=processed, new_cursor=new_cursor)


class DeletionScanner:
    """Turns vanished source entities into delete jobs.

    Args:
        jobs: Job repository.
        seen: Seen ledger repository.
        entry_table: Live source entry table, joined against the ledger.
        uuid_column: Column of *entry_table* holding the source uuid.
        priority: Priority stamped on new delete jobs.
        clock: Source of "now".
    """

    def __init__(
        self,
        jobs: JobRepository,
        seen: SeenRepository,
        *,
        entry_table: str,
        uuid_column: str = "uuid",
        priority: int = 1,
        clock: Clock = utc_now,
    ) -> None:
        self.jobs = jobs
        self.seen = seen
        self.entry_table = entry_table
        self.uuid_column = uuid_column
        self.priority = priority
        self._clock = clock

    def scan(self, limit: int) -> int:
        vanished = self.seen.find_vanished(self.entry_table, limit, uuid_column=self.uuid_column)
        count = 0
        for record in vanished:
            now = format_ts(self._clock())
            if not self.seen.mark_missing(record.source_uuid, now):
                # another scanner marked it first
                continue

            inserted = self.jobs.enqueue(
                record.source_uuid,
                record.last_seen_version,
                record.last_seen_collection_key,
                JobType.DELETE,
                now,
                priority=self.priority,
            )
            job_id = self.jobs.find_id(
                record.source_uuid,
                record.last_seen_version,
                record.last_seen_collection_key,
                JobType.DELETE,
            )
            if job_id is not None:
                self.seen.set_delete_job(record.source_uuid, job_id)
            self.jobs.commit()
            # same version vanishing twice maps onto the existing delete job
            count += inserted

        if count:
            logger.info("scan.deletes_done", candidates=len(vanished), enqueued=count)
        return count


__all__ = ["ScanResult", "ChangeScanner", "DeletionScanner", "collection_key_for"]
