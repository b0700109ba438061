"""
Terminal and retry transitions for claimed work.

``ack`` and ``fail`` are the only ways a claimed job leaves ``running``
besides lease expiry.  Both are guarded by the claim token the item was
claimed under: if the lease lapsed and another worker re-claimed the job,
the late caller's update matches nothing and is ignored.

Retry policy::

    fail(item, msg, retryable)
        │
        ├── not retryable                 → error   (message kept)
        ├── attempts >= max_attempts      → error
        └── otherwise                     → pending (lease cleared, message kept)

Store failures are logged and swallowed: the caller is a worker loop that
must keep going, and an unacked job is recovered by the lease reaper.

Tags:
    ack, retry, lease, queue, vectorsync
"""

from __future__ import annotations

from vectorsync.core.enums import JobState
from vectorsync.core.errors import DatabaseConnectionError, DatabaseError
from vectorsync.core.logging import get_logger
from vectorsync.core.models import WorkItem
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.timestamps import Clock, format_ts, utc_now

logger = get_logger(__name__)


def truncate_message(message: str, limit: int) -> str:
    message = str(message)
    return message if len(message) <= limit else message[:limit]


class Acker:
    """Moves claimed jobs to ``done`` / ``pending`` / ``error``.

    Args:
        jobs: Job repository.
        seen: Seen ledger repository (stamped on delete acks).
        max_attempts: Retry ceiling.
        message_limit: Stored error messages are cut to this many characters.
        clock: Source of "now".
    """

    def __init__(
        self,
        jobs: JobRepository,
        seen: SeenRepository,
        *,
        max_attempts: int = 5,
        message_limit: int = 4000,
        clock: Clock = utc_now,
    ) -> None:
        self.jobs = jobs
        self.seen = seen
        self.max_attempts = max_attempts
        self.message_limit = message_limit
        self._clock = clock

    def ack(self, item: WorkItem) -> bool:
        """Mark the item's job ``done``.  Returns False if the ack was ignored."""
        now = format_ts(self._clock())
        try:
            won = self.jobs.mark_done(item.job_id, now, token=item.claim_token)
            if won and item.is_delete:
                self.seen.mark_deleted(item.source_uuid, item.collection_key, now)
            self.jobs.commit()
        except (DatabaseError, DatabaseConnectionError) as exc:
            self._rollback()
            logger.error("ack.store_failed", job_id=item.job_id, error=str(exc))
            return False

        if not won:
            logger.warning("ack.stale_ignored", job_id=item.job_id, claim_token=item.claim_token)
            return False
        logger.debug("ack.done", job_id=item.job_id, action=item.action.value)
        return True

    def fail(self, item: WorkItem, message: str, retryable: bool = True) -> JobState | None:
        """Record a failed attempt for *item*.  Returns the new state, or None if ignored."""
        return self.fail_job(item.job_id, item.claim_token, message, retryable)

    def fail_job(
        self,
        job_id: int,
        claim_token: str | None,
        message: str,
        retryable: bool = True,
    ) -> JobState | None:
        """Same as :meth:`fail` for a job that never became a :class:`WorkItem`."""
        now = format_ts(self._clock())
        try:
            attempts = self.jobs.get_attempts(job_id)
            if attempts is None:
                logger.warning("fail.job_missing", job_id=job_id)
                return None

            final = not retryable or attempts >= self.max_attempts
            new_state = JobState.ERROR if final else JobState.PENDING
            won = self.jobs.mark_failed(
                job_id,
                new_state,
                truncate_message(message, self.message_limit),
                now,
                token=claim_token,
            )
            self.jobs.commit()
        except (DatabaseError, DatabaseConnectionError) as exc:
            self._rollback()
            logger.error("fail.store_failed", job_id=job_id, error=str(exc))
            return None

        if not won:
            logger.warning("fail.stale_ignored", job_id=job_id, claim_token=claim_token)
            return None

        log = logger.error if new_state is JobState.ERROR else logger.warning
        log(
            "job.failed",
            job_id=job_id,
            attempts=attempts,
            retryable=retryable,
            state=new_state.value,
            error=str(message)[:200],
        )
        return new_state

    def _rollback(self) -> None:
        try:
            self.jobs.conn.rollback()
        except Exception:  # noqa: BLE001
            logger.debug("rollback.failed", exc_info=True)


__all__ = ["Acker", "truncate_message"]
