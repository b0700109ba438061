"""
Job operations for operators.

List and inspect jobs, summarize the queue, put failed jobs back in line,
and release expired leases.  These are the manual-intervention paths for
jobs that ended in ``error``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from vectorsync.core.enums import JobState, JobType
from vectorsync.core.errors import VectorSyncError
from vectorsync.core.hashing import normalize_hex
from vectorsync.core.logging import get_logger
from vectorsync.core.models import Job
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.timestamps import format_ts
from vectorsync.ops.context import OperationContext
from vectorsync.ops.result import OperationResult, PagedResult, start_timer
from vectorsync.queue.reaper import LeaseReaper, ReapResult

logger = get_logger(__name__)

_NO_STORE = ("STORE_UNAVAILABLE", "Store not connected")


@dataclass(slots=True)
class JobSummary:
    """One row of ``jobs list``."""

    job_id: int
    source_uuid: str
    source_version: str | None
    collection_key: str
    job_type: str
    state: str
    priority: int
    attempts: int
    updated_at: str | None = None
    error_message: str | None = None


@dataclass(slots=True)
class JobDetail:
    """Full job row plus the seen ledger entry of its entity."""

    job: dict[str, Any]
    seen: dict[str, Any] | None = None


@dataclass(slots=True)
class QueueStats:
    by_state: dict[str, int] = field(default_factory=dict)
    total: int = 0
    expired_leases: int = 0
    missing_entities: int = 0
    oldest_pending_at: str | None = None


def _job_repo(ctx: OperationContext) -> JobRepository:
    return JobRepository(ctx.conn)


def _summary(job: Job) -> JobSummary:
    return JobSummary(
        job_id=job.job_id,
        source_uuid=job.source_uuid,
        source_version=job.source_version,
        collection_key=job.collection_key,
        job_type=job.job_type,
        state=job.state.value,
        priority=job.priority,
        attempts=job.attempts,
        updated_at=job.updated_at,
        error_message=job.error_message,
    )


def _job_dict(job: Job) -> dict[str, Any]:
    d = asdict(job)
    d["state"] = job.state.value
    return d


def list_jobs(
    ctx: OperationContext,
    *,
    state: str | None = None,
    job_type: str | None = None,
    collection_key: str | None = None,
    source_uuid: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> PagedResult[JobSummary]:
    """List jobs, newest first."""
    timer = start_timer()
    if ctx.conn is None:
        return PagedResult.fail(*_NO_STORE, elapsed_ms=timer.elapsed_ms)

    if state is not None and state not in {s.value for s in JobState}:
        return PagedResult.fail(
            "VALIDATION_FAILED",
            f"Unknown state {state!r}",
            details={"allowed": [s.value for s in JobState]},
            elapsed_ms=timer.elapsed_ms,
        )
    if job_type is not None and job_type not in {t.value for t in JobType}:
        return PagedResult.fail(
            "VALIDATION_FAILED",
            f"Unknown job type {job_type!r}",
            details={"allowed": [t.value for t in JobType]},
            elapsed_ms=timer.elapsed_ms,
        )
    if limit <= 0 or offset < 0:
        return PagedResult.fail(
            "VALIDATION_FAILED", "limit must be positive and offset non-negative",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        jobs, total = _job_repo(ctx).list_jobs(
            state=state,
            job_type=job_type,
            collection_key=collection_key,
            source_uuid=normalize_hex(source_uuid) or None,
            limit=limit,
            offset=offset,
        )
    except VectorSyncError as exc:
        logger.error("op_failed", op="list_jobs", error=str(exc))
        return PagedResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    return PagedResult.from_items(
        [_summary(j) for j in jobs], total, limit=limit, offset=offset, elapsed_ms=timer.elapsed_ms
    )


def get_job(ctx: OperationContext, job_id: int) -> OperationResult[JobDetail]:
    """Job row and the seen ledger entry of its entity."""
    timer = start_timer()
    if ctx.conn is None:
        return OperationResult.fail(*_NO_STORE, elapsed_ms=timer.elapsed_ms)

    try:
        job = _job_repo(ctx).get_by_id(job_id)
        if job is None:
            return OperationResult.fail(
                "NOT_FOUND", f"Job {job_id} not found", elapsed_ms=timer.elapsed_ms
            )
        seen = SeenRepository(ctx.conn).get(job.source_uuid)
    except VectorSyncError as exc:
        logger.error("op_failed", op="get_job", error=str(exc))
        return OperationResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(
        JobDetail(job=_job_dict(job), seen=asdict(seen) if seen else None),
        elapsed_ms=timer.elapsed_ms,
    )


def queue_stats(ctx: OperationContext, *, collection_key: str | None = None) -> OperationResult[QueueStats]:
    """Counts per state plus lag indicators."""
    timer = start_timer()
    if ctx.conn is None:
        return OperationResult.fail(*_NO_STORE, elapsed_ms=timer.elapsed_ms)

    try:
        repo = _job_repo(ctx)
        by_state = repo.count_by_state(collection_key=collection_key)
        oldest = repo.oldest_pending()
        stats = QueueStats(
            by_state=by_state,
            total=sum(by_state.values()),
            expired_leases=repo.count_expired(format_ts(ctx.clock())),
            missing_entities=SeenRepository(ctx.conn).count_missing(),
            oldest_pending_at=oldest["created_at"] if oldest else None,
        )
    except VectorSyncError as exc:
        logger.error("op_failed", op="queue_stats", error=str(exc))
        return OperationResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(stats, elapsed_ms=timer.elapsed_ms)


def requeue_jobs(
    ctx: OperationContext,
    *,
    job_ids: list[int] | None = None,
    collection_key: str | None = None,
) -> OperationResult[int]:
    """Move ``error`` jobs back to ``pending`` with a fresh attempt budget.

    Without *job_ids* every ``error`` job (of *collection_key*, if given)
    is requeued.  Returns the number of jobs moved.
    """
    timer = start_timer()
    if ctx.conn is None:
        return OperationResult.fail(*_NO_STORE, elapsed_ms=timer.elapsed_ms)

    try:
        repo = _job_repo(ctx)
        if ctx.dry_run:
            if job_ids:
                matching = [
                    j for j in (repo.get_by_id(i) for i in job_ids)
                    if j is not None and j.state is JobState.ERROR
                    and (collection_key is None or j.collection_key == collection_key)
                ]
                return OperationResult.ok(len(matching), elapsed_ms=timer.elapsed_ms)
            _, total = repo.list_jobs(state=JobState.ERROR.value, collection_key=collection_key, limit=1)
            return OperationResult.ok(total, elapsed_ms=timer.elapsed_ms)

        moved = repo.requeue_errors(
            format_ts(ctx.clock()), job_ids=job_ids, collection_key=collection_key
        )
        repo.commit()
    except VectorSyncError as exc:
        logger.error("op_failed", op="requeue_jobs", error=str(exc))
        return OperationResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    logger.info("jobs.requeued", count=moved, job_ids=job_ids, collection_key=collection_key)
    warnings = []
    if job_ids and moved < len(job_ids):
        warnings.append(f"{len(job_ids) - moved} job(s) were not in state 'error'")
    return OperationResult.ok(moved, warnings=warnings, elapsed_ms=timer.elapsed_ms)


def reap_leases(ctx: OperationContext) -> OperationResult[ReapResult]:
    """Release ``running`` jobs whose lease lapsed."""
    timer = start_timer()
    if ctx.conn is None:
        return OperationResult.fail(*_NO_STORE, elapsed_ms=timer.elapsed_ms)

    try:
        repo = _job_repo(ctx)
        if ctx.dry_run:
            expired = repo.count_expired(format_ts(ctx.clock()))
            return OperationResult.ok(ReapResult(requeued=expired), elapsed_ms=timer.elapsed_ms)
        result = LeaseReaper(repo, max_attempts=ctx.settings.max_attempts, clock=ctx.clock).reap()
    except VectorSyncError as exc:
        logger.error("op_failed", op="reap_leases", error=str(exc))
        return OperationResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)


__all__ = [
    "JobDetail",
    "JobSummary",
    "QueueStats",
    "get_job",
    "list_jobs",
    "queue_stats",
    "reap_leases",
    "requeue_jobs",
]
