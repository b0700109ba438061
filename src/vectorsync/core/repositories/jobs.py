"""Job repository — the ``embedding_job`` table and its claim protocol.

Every state transition of a job is one conditional ``UPDATE`` here.  The
``WHERE`` clause of each update restates the state the caller believes the
row is in, so a transition that lost a race against another process affects
zero rows instead of corrupting state.  Callers read the affected row count
to learn whether they won.

Claim protocol::

    select_claimable(limit, now)      → [ids]     (pending, lease free)
    claim(ids, token, lease, now)     → n         (… WHERE state='pending'
                                                        AND job_id IN ids)
    load_claimed(token)               → [Job]     (… WHERE claim_token=token)

Tags:
    vectorsync, repository, queue, claim, lease
"""

from __future__ import annotations

from typing import Any

from vectorsync.core.enums import JobState, JobType
from vectorsync.core.models import Job
from vectorsync.core.repository import BaseRepository

from ._helpers import _build_where


class JobRepository(BaseRepository):
    """CRUD and state transitions for the ``embedding_job`` table."""

    TABLE = "embedding_job"

    COLUMNS = (
        "job_id, source_uuid, source_version, collection_key, job_type, "
        "state, priority, attempts, lease_until, claim_token, claimed_at, "
        "created_at, updated_at, error_message"
    )

    # -- Enqueue -----------------------------------------------------------

    def enqueue(
        self,
        source_uuid: str,
        source_version: str | None,
        collection_key: str,
        job_type: JobType,
        now: str,
        *,
        priority: int = 1,
    ) -> int:
        """Insert a pending job unless its unique key exists.

        Returns 1 if a row was created, 0 for a duplicate.
        """
        return self.insert_or_ignore(
            self.TABLE,
            {
                "source_uuid": source_uuid,
                "source_version": source_version,
                "collection_key": collection_key,
                "job_type": job_type.value,
                "state": JobState.PENDING.value,
                "priority": priority,
                "attempts": 0,
                "created_at": now,
                "updated_at": now,
            },
        )

    def find_id(
        self,
        source_uuid: str,
        source_version: str,
        collection_key: str,
        job_type: JobType,
    ) -> int | None:
        """Job id for a unique key (newest first if legacy duplicates exist)."""
        job_id = self.scalar(
            f"SELECT job_id FROM {self.TABLE} "
            f"WHERE source_uuid = {self.ph(1)} AND source_version = {self.ph(1)} "
            f"AND collection_key = {self.ph(1)} AND job_type = {self.ph(1)} "
            f"ORDER BY job_id DESC LIMIT 1",
            (source_uuid, source_version, collection_key, job_type.value),
        )
        return int(job_id) if job_id is not None else None

    def supersede_pending_upserts(
        self,
        source_uuid: str,
        collection_key: str,
        keep_version: str,
        now: str,
    ) -> int:
        """Retire not-yet-claimed upserts made stale by *keep_version*.

        Only ``pending`` rows are touched; a ``running`` job keeps its claim.
        The job carrying *keep_version* itself is left alone so a duplicate
        delivery of the current version cannot retire the only live job.
        """
        return self.update(
            f"UPDATE {self.TABLE} SET state = 'superseded', lease_until = NULL, "
            f"updated_at = {self.ph(1)} "
            f"WHERE source_uuid = {self.ph(1)} AND collection_key = {self.ph(1)} "
            f"AND job_type = 'upsert' AND state = 'pending' "
            f"AND (source_version IS NULL OR source_version <> {self.ph(1)})",
            (now, source_uuid, collection_key, keep_version),
        )

    # -- Claim -------------------------------------------------------------

    def select_claimable(self, limit: int, now: str) -> list[int]:
        """Ids of pending jobs whose lease is free, strict priority then FIFO."""
        rows = self.query(
            f"SELECT job_id FROM {self.TABLE} "
            f"WHERE state = 'pending' "
            f"AND (lease_until IS NULL OR lease_until < {self.ph(1)}) "
            f"ORDER BY priority DESC, job_id ASC LIMIT {self.ph(1)}",
            (now, limit),
        )
        return [int(r["job_id"]) for r in rows]

    def claim(self, job_ids: list[int], token: str, lease_until: str, now: str) -> int:
        """Move still-pending jobs among *job_ids* to ``running`` under *token*.

        Rows that another claimer already took no longer match
        ``state = 'pending'`` and are left untouched.
        """
        if not job_ids:
            return 0
        return self.update(
            f"UPDATE {self.TABLE} SET state = 'running', "
            f"lease_until = {self.ph(1)}, attempts = attempts + 1, "
            f"claim_token = {self.ph(1)}, claimed_at = {self.ph(1)}, "
            f"updated_at = {self.ph(1)} "
            f"WHERE state = 'pending' AND job_id IN ({self.ph(len(job_ids))})",
            (lease_until, token, now, now, *job_ids),
        )

    def load_claimed(self, token: str) -> list[Job]:
        """Jobs this claimer actually holds."""
        rows = self.query(
            f"SELECT {self.COLUMNS} FROM {self.TABLE} "
            f"WHERE state = 'running' AND claim_token = {self.ph(1)} "
            f"ORDER BY priority DESC, job_id ASC",
            (token,),
        )
        return [Job.from_row(r) for r in rows]

    # -- Terminal / retry transitions --------------------------------------

    def _holder_clause(self, token: str | None) -> tuple[str, tuple]:
        if token is None:
            return "", ()
        return f" AND state = 'running' AND claim_token = {self.ph(1)}", (token,)

    def mark_done(self, job_id: int, now: str, *, token: str | None = None) -> int:
        """``running → done``; clears lease and error."""
        clause, extra = self._holder_clause(token)
        return self.update(
            f"UPDATE {self.TABLE} SET state = 'done', lease_until = NULL, "
            f"claim_token = NULL, error_message = NULL, updated_at = {self.ph(1)} "
            f"WHERE job_id = {self.ph(1)}{clause}",
            (now, job_id, *extra),
        )

    def mark_failed(
        self,
        job_id: int,
        new_state: JobState,
        message: str,
        now: str,
        *,
        token: str | None = None,
    ) -> int:
        """``running → pending`` (retry) or ``running → error`` (final)."""
        if new_state not in (JobState.PENDING, JobState.ERROR):
            raise ValueError(f"mark_failed cannot move a job to {new_state.value}")
        clause, extra = self._holder_clause(token)
        return self.update(
            f"UPDATE {self.TABLE} SET state = {self.ph(1)}, lease_until = NULL, "
            f"claim_token = NULL, error_message = {self.ph(1)}, "
            f"updated_at = {self.ph(1)} "
            f"WHERE job_id = {self.ph(1)}{clause}",
            (new_state.value, message, now, job_id, *extra),
        )

    def mark_superseded(self, job_id: int, now: str, *, token: str | None = None) -> int:
        """``running → superseded`` for a job found stale at claim time."""
        clause, extra = self._holder_clause(token)
        return self.update(
            f"UPDATE {self.TABLE} SET state = 'superseded', lease_until = NULL, "
            f"claim_token = NULL, updated_at = {self.ph(1)} "
            f"WHERE job_id = {self.ph(1)}{clause}",
            (now, job_id, *extra),
        )

    def get_attempts(self, job_id: int) -> int | None:
        attempts = self.scalar(
            f"SELECT attempts FROM {self.TABLE} WHERE job_id = {self.ph(1)}",
            (job_id,),
        )
        return int(attempts) if attempts is not None else None

    # -- Lease expiry ------------------------------------------------------

    def reap_expired(self, now: str, max_attempts: int, message: str) -> tuple[int, int]:
        """Release ``running`` jobs whose lease has lapsed.

        Jobs that already used their last attempt become ``error``; the rest
        return to ``pending``.  Returns ``(requeued, errored)``.
        """
        expired = f"state = 'running' AND lease_until IS NOT NULL AND lease_until < {self.ph(1)}"
        errored = self.update(
            f"UPDATE {self.TABLE} SET state = 'error', lease_until = NULL, "
            f"claim_token = NULL, error_message = {self.ph(1)}, updated_at = {self.ph(1)} "
            f"WHERE {expired} AND attempts >= {self.ph(1)}",
            (message, now, now, max_attempts),
        )
        requeued = self.update(
            f"UPDATE {self.TABLE} SET state = 'pending', lease_until = NULL, "
            f"claim_token = NULL, error_message = {self.ph(1)}, updated_at = {self.ph(1)} "
            f"WHERE {expired}",
            (message, now, now),
        )
        return requeued, errored

    def count_expired(self, now: str) -> int:
        """Number of ``running`` jobs whose lease lapsed before *now*."""
        return int(
            self.scalar(
                f"SELECT COUNT(*) AS cnt FROM {self.TABLE} "
                f"WHERE state = 'running' AND lease_until IS NOT NULL AND lease_until < {self.ph(1)}",
                (now,),
                default=0,
            )
            or 0
        )

    # -- Operator access ---------------------------------------------------

    def get_by_id(self, job_id: int) -> Job | None:
        row = self.query_one(
            f"SELECT {self.COLUMNS} FROM {self.TABLE} WHERE job_id = {self.ph(1)}",
            (job_id,),
        )
        return Job.from_row(row) if row else None

    def list_jobs(
        self,
        *,
        state: str | None = None,
        job_type: str | None = None,
        collection_key: str | None = None,
        source_uuid: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """List jobs with filters.  Returns ``(jobs, total)``."""
        where, params = _build_where(
            {
                "state": state,
                "job_type": job_type,
                "collection_key": collection_key,
                "source_uuid": source_uuid,
            },
            self.ph,
        )
        total = self.scalar(
            f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE {where}", params, default=0,
        )
        rows = self.query(
            f"SELECT {self.COLUMNS} FROM {self.TABLE} WHERE {where} "
            f"ORDER BY job_id DESC LIMIT {self.ph(1)} OFFSET {self.ph(1)}",
            (*params, limit, offset),
        )
        return [Job.from_row(r) for r in rows], int(total or 0)

    def count_by_state(self, *, collection_key: str | None = None) -> dict[str, int]:
        """Job counts per state (every state present, zero-filled)."""
        where, params = _build_where({"collection_key": collection_key}, self.ph)
        rows = self.query(
            f"SELECT state, COUNT(*) AS cnt FROM {self.TABLE} WHERE {where} GROUP BY state",
            params,
        )
        counts = {s.value: 0 for s in JobState}
        for r in rows:
            counts[r["state"]] = int(r["cnt"])
        return counts

    def requeue_errors(
        self,
        now: str,
        *,
        job_ids: list[int] | None = None,
        collection_key: str | None = None,
    ) -> int:
        """Reset ``error`` jobs to ``pending`` with a fresh attempt budget."""
        where, params = _build_where(
            {"collection_key": collection_key},
            self.ph,
            extra_clauses=["state = 'error'"],
        )
        if job_ids:
            where = f"{where} AND job_id IN ({self.ph(len(job_ids))})"
            params = (*params, *job_ids)
        return self.update(
            f"UPDATE {self.TABLE} SET state = 'pending', attempts = 0, "
            f"lease_until = NULL, claim_token = NULL, error_message = NULL, "
            f"updated_at = {self.ph(1)} WHERE {where}",
            (now, *params),
        )

    def oldest_pending(self) -> dict[str, Any] | None:
        """``{"job_id", "created_at"}`` of the oldest pending job, for lag stats."""
        return self.query_one(
            f"SELECT job_id, created_at FROM {self.TABLE} "
            f"WHERE state = 'pending' ORDER BY job_id ASC LIMIT 1",
        )


__all__ = ["JobRepository"]
