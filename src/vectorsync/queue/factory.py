"""Wiring of queue components from settings.

Bootstrap code (CLI commands, scheduler entry points) builds runs through
these helpers so that every knob comes from one
:class:`~vectorsync.core.settings.VectorSyncSettings` object.
"""

from __future__ import annotations

from vectorsync.core.dialect import Dialect
from vectorsync.core.protocols import Connection, EmbeddingExecutor
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.settings import VectorSyncSettings
from vectorsync.core.timestamps import Clock, utc_now
from vectorsync.source.sql import SqlEntrySource

from .acker import Acker
from .claimer import Claimer
from .enqueue import EnqueueRun
from .reaper import LeaseReaper
from .worker import WorkerRun


def build_acker(
    conn: Connection,
    settings: VectorSyncSettings,
    *,
    dialect: Dialect | None = None,
    clock: Clock = utc_now,
) -> Acker:
    return Acker(
        JobRepository(conn, dialect),
        SeenRepository(conn, dialect),
        max_attempts=settings.max_attempts,
        message_limit=settings.error_message_limit,
        clock=clock,
    )


def build_reaper(
    conn: Connection,
    settings: VectorSyncSettings,
    *,
    dialect: Dialect | None = None,
    clock: Clock = utc_now,
) -> LeaseReaper:
    return LeaseReaper(JobRepository(conn, dialect), max_attempts=settings.max_attempts, clock=clock)


def build_claimer(
    conn: Connection,
    settings: VectorSyncSettings,
    *,
    source: SqlEntrySource | None = None,
    acker: Acker | None = None,
    dialect: Dialect | None = None,
    clock: Clock = utc_now,
) -> Claimer:
    """Claimer backed by the default SQL source (or *source*)."""
    source = source or SqlEntrySource.from_settings(conn, settings, dialect)
    acker = acker or build_acker(conn, settings, dialect=dialect, clock=clock)
    reaper = (
        build_reaper(conn, settings, dialect=dialect, clock=clock)
        if settings.reap_expired_leases
        else None
    )
    return Claimer(
        JobRepository(conn, dialect),
        SeenRepository(conn, dialect),
        source,
        acker=acker,
        access=source,
        annotations=source,
        reaper=reaper,
        lease_seconds=settings.lease_seconds,
        default_limit=settings.claim_limit,
        clock=clock,
    )


def build_enqueue_run(
    conn: Connection | None,
    settings: VectorSyncSettings,
    *,
    dialect: Dialect | None = None,
    clock: Clock = utc_now,
) -> EnqueueRun:
    source = SqlEntrySource.from_settings(conn, settings, dialect) if conn is not None else None
    return EnqueueRun.from_settings(
        conn,
        source,
        settings,
        uuid_column=SqlEntrySource.uuid_column,
        dialect=dialect,
        clock=clock,
    )


def build_worker_run(
    conn: Connection | None,
    settings: VectorSyncSettings,
    executor: EmbeddingExecutor,
    *,
    limit: int = 0,
    dialect: Dialect | None = None,
    clock: Clock = utc_now,
) -> WorkerRun:
    if conn is None:
        return WorkerRun(None, None, executor, limit=limit)
    acker = build_acker(conn, settings, dialect=dialect, clock=clock)
    claimer = build_claimer(conn, settings, acker=acker, dialect=dialect, clock=clock)
    return WorkerRun(claimer, acker, executor, limit=limit or settings.claim_limit)


__all__ = [
    "build_acker",
    "build_reaper",
    "build_claimer",
    "build_enqueue_run",
    "build_worker_run",
]
