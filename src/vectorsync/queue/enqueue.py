"""One scheduled scanner invocation.

:class:`EnqueueRun` is what a cron entry or the ``vectorsync enqueue run``
command executes.  It is safe to start many of them concurrently: all
coordination happens in the shared store.

Run sequence::

    create_tables                  idempotent
    checkpoint = load(name)
    should_run(checkpoint)?        no  → "Skip (min interval not reached)"
    change scan (from cursor)
    advance(name, new_cursor)      only after the change scan finished
    deletion scan
    touch(name)
    → "Enqueue done - changed: N, deletes: M"

A store that cannot be reached yields ``"Store not connected"``; any other
database error is rolled back and yields ``"Enqueue failed - <message>"``.
"""

from __future__ import annotations

from vectorsync.core.checkpoint import CheckpointStore
from vectorsync.core.dialect import Dialect, SQLiteDialect
from vectorsync.core.errors import DatabaseConnectionError, DatabaseError
from vectorsync.core.logging import get_logger
from vectorsync.core.protocols import Connection, SourceReader
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.schema import create_tables
from vectorsync.core.settings import VectorSyncSettings
from vectorsync.core.timestamps import Clock, utc_now

from .scanner import ChangeScanner, DeletionScanner

logger = get_logger(__name__)

STORE_NOT_CONNECTED = "Store not connected"
SKIPPED = "Skip (min interval not reached)"
FAILED = "Enqueue failed"


class EnqueueRun:
    """Throttled change scan plus deletion scan.

    Args:
        conn: Shared store, or None when it could not be opened.
        source: Incremental reader over the system of record.
        entry_table: Live source entry table for the deletion anti-join.
        uuid_column: Uuid column of *entry_table*.
        dialect: SQL dialect of *conn*.
        checkpoint_name: Name of the cursor row.
        min_interval_seconds: Throttle between two runs.
        change_batch: Max changed rows per run.
        delete_batch: Max vanished entities per run.
        default_collection_key: Collection for blank type aliases.
        priority: Priority of new jobs.
        clock: Source of "now".
    """

    def __init__(
        self,
        conn: Connection | None,
        source: SourceReader,
        *,
        entry_table: str = "source_entry",
        uuid_column: str = "uuid",
        dialect: Dialect | None = None,
        checkpoint_name: str = "entries",
        min_interval_seconds: int = 900,
        change_batch: int = 5000,
        delete_batch: int = 2000,
        default_collection_key: str = "default",
        priority: int = 1,
        clock: Clock = utc_now,
    ) -> None:
        self.conn = conn
        self.dialect = dialect or SQLiteDialect()
        self.checkpoint_name = checkpoint_name
        self.change_batch = change_batch
        self.delete_batch = delete_batch

        if conn is None:
            return

        jobs = JobRepository(conn, self.dialect)
        seen = SeenRepository(conn, self.dialect)
        self.checkpoints = CheckpointStore(
            conn, self.dialect, min_interval_seconds=min_interval_seconds, clock=clock
        )
        self.changes = ChangeScanner(
            jobs,
            seen,
            source,
            default_collection_key=default_collection_key,
            priority=priority,
            clock=clock,
        )
        self.deletions = DeletionScanner(
            jobs,
            seen,
            entry_table=entry_table,
            uuid_column=uuid_column,
            priority=priority,
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls,
        conn: Connection | None,
        source: SourceReader,
        settings: VectorSyncSettings,
        **overrides,
    ) -> EnqueueRun:
        kwargs = {
            "entry_table": settings.entry_table,
            "checkpoint_name": settings.checkpoint_name,
            "min_interval_seconds": settings.min_interval_seconds,
            "change_batch": settings.change_batch,
            "delete_batch": settings.delete_batch,
            "default_collection_key": settings.default_collection_key,
            "priority": settings.default_priority,
        }
        kwargs.update(overrides)
        return cls(conn, source, **kwargs)

    def run(self, *, force: bool = False) -> str:
        """Execute one scan cycle and return its status line.

        ``force`` bypasses the min-interval throttle.
        """
        if self.conn is None:
            logger.error("enqueue.store_unavailable")
            return STORE_NOT_CONNECTED

        try:
            create_tables(self.conn, self.dialect)
            checkpoint = self.checkpoints.load(self.checkpoint_name)
            self.conn.commit()

            if not force and not self.checkpoints.should_run(checkpoint):
                logger.info(
                    "enqueue.skipped",
                    checkpoint=checkpoint.name,
                    last_run_at=checkpoint.last_run_at,
                )
                return SKIPPED

            result = self.changes.scan(self.change_batch, checkpoint.last_changed)
            self.checkpoints.advance(self.checkpoint_name, result.new_cursor)
            self.conn.commit()

            deletes = self.deletions.scan(self.delete_batch)

            self.checkpoints.touch(self.checkpoint_name)
            self.conn.commit()
        except DatabaseConnectionError as exc:
            self._rollback()
            logger.error("enqueue.store_unavailable", error=str(exc))
            return STORE_NOT_CONNECTED
        except DatabaseError as exc:
            self._rollback()
            logger.error("enqueue.failed", error=str(exc), category=exc.category.value)
            return f"{FAILED} - {exc.message}"

        status = f"Enqueue done - changed: {result.processed}, deletes: {deletes}"
        logger.info("enqueue.done", changed=result.processed, deletes=deletes, cursor=result.new_cursor)
        return status

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except Exception:  # noqa: BLE001
            logger.debug("rollback.failed", exc_info=True)


__all__ = ["EnqueueRun", "FAILED", "STORE_NOT_CONNECTED", "SKIPPED"]
