"""
Named scan cursors with forward-only advancement.

A checkpoint answers two questions for the change scanner: "how far have I
read?" (``last_changed``, a high-water mark over source change timestamps)
and "when did I last run?" (``last_run_at``, for throttling).

Architecture:
    ::

        EnqueueRun
          │ load("entries")          INSERT OR IGNORE at epoch
          │ should_run(cp)           now - last_run_at >= min_interval
          │ ... change scan ...
          │ advance("entries", cur)  UPDATE … WHERE last_changed < cur
          │ touch("entries")         last_run_at = now
          ▼
        ┌──────────────────────────────────────────────┐
        │ embedding_checkpoint                         │
        │ name    | last_changed        | last_run_at  │
        │ entries | 2026-02-15 10:04:11 | 2026-02-15…  │
        └──────────────────────────────────────────────┘

    Forward-only is enforced in the ``WHERE`` clause, not in Python, so two
    runners that finish out of order can never move the cursor backwards.

Examples:
    >>> store = CheckpointStore(conn)
    >>> cp = store.load("entries")
    >>> cp.last_changed
    '1970-01-01 00:00:00'
    >>> store.advance("entries", "2026-02-15 10:04:11")
    True

Tags:
    checkpoint, watermark, cursor, incremental, vectorsync
"""

from __future__ import annotations

from datetime import timedelta

from vectorsync.core.dialect import Dialect
from vectorsync.core.models import Checkpoint
from vectorsync.core.protocols import Connection
from vectorsync.core.repository import BaseRepository
from vectorsync.core.timestamps import EPOCH, Clock, format_ts, parse_ts, utc_now


class CheckpointStore(BaseRepository):
    """Persistence for :class:`~vectorsync.core.models.Checkpoint` rows.

    Args:
        conn: Database connection holding ``embedding_checkpoint``.
        dialect: SQL dialect (SQLite by default).
        min_interval_seconds: Throttle used by :meth:`should_run`.
        clock: Source of "now"; defaults to :func:`utc_now`.
    """

    TABLE = "embedding_checkpoint"

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        min_interval_seconds: int = 900,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(conn, dialect)
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock

    def load(self, name: str) -> Checkpoint:
        """Return the checkpoint, creating it at the epoch if absent."""
        self.insert_or_ignore(self.TABLE, {"name": name, "last_changed": EPOCH})
        row = self.query_one(
            f"SELECT name, last_changed, last_run_at FROM {self.TABLE} WHERE name = {self.ph(1)}",
            (name,),
        )
        if row is None:
            return Checkpoint(name=name, last_changed=EPOCH)
        return Checkpoint(
            name=row["name"],
            last_changed=row["last_changed"] or EPOCH,
            last_run_at=row["last_run_at"],
        )

    def should_run(self, checkpoint: Checkpoint) -> bool:
        """True if the checkpoint never ran or the throttle interval elapsed."""
        last = parse_ts(checkpoint.last_run_at)
        if last is None:
            return True
        return self._clock() - last >= timedelta(seconds=self.min_interval_seconds)

    def advance(self, name: str, cursor: str) -> bool:
        """Move ``last_changed`` forward to *cursor*.

        A cursor at or behind the stored value is a no-op.  Returns True if
        the stored value moved.
        """
        return (
            self.update(
                f"UPDATE {self.TABLE} SET last_changed = {self.ph(1)} "
                f"WHERE name = {self.ph(1)} AND last_changed < {self.ph(1)}",
                (cursor, name, cursor),
            )
            > 0
        )

    def touch(self, name: str) -> None:
        """Stamp ``last_run_at = now``."""
        self.update(
            f"UPDATE {self.TABLE} SET last_run_at = {self.ph(1)} WHERE name = {self.ph(1)}",
            (format_ts(self._clock()), name),
        )


__all__ = ["CheckpointStore"]
