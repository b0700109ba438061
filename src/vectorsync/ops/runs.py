"""
Run operations: schema setup, one enqueue cycle, one worker batch.

Thin wrappers that build the queue components from ``ctx.settings`` and
translate their outcome into :class:`OperationResult` envelopes.  The run
status line (``"Enqueue done - changed: 3, deletes: 0"`` and friends) is the
result payload.
"""

from __future__ import annotations

from vectorsync.core.errors import ConfigError, VectorSyncError
from vectorsync.core.logging import LogContext, get_logger
from vectorsync.core.protocols import EmbeddingExecutor
from vectorsync.core.schema import create_tables
from vectorsync.ops.context import OperationContext
from vectorsync.ops.result import OperationResult, start_timer
from vectorsync.queue.enqueue import FAILED, STORE_NOT_CONNECTED
from vectorsync.queue.factory import build_enqueue_run, build_worker_run
from vectorsync.queue.worker import resolve_executor
from vectorsync.source.sql import SqlEntrySource, create_source_tables

logger = get_logger(__name__)


def init_db(ctx: OperationContext, *, with_source: bool = False) -> OperationResult[list[str]]:
    """Create the queue tables (and optionally the default source tables)."""
    timer = start_timer()
    if ctx.conn is None:
        return OperationResult.fail("STORE_UNAVAILABLE", STORE_NOT_CONNECTED, elapsed_ms=timer.elapsed_ms)

    try:
        tables = create_tables(ctx.conn)
        if with_source:
            source = SqlEntrySource.from_settings(ctx.conn, ctx.settings)
            create_source_tables(ctx.conn, source)
            tables += [
                source.type_table,
                source.entry_table,
                source.access_table,
                source.tag_table,
                source.name_table,
                source.relation_table,
            ]
    except VectorSyncError as exc:
        logger.error("op_failed", op="init_db", error=str(exc))
        return OperationResult.from_error("DATABASE_ERROR", exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(tables, elapsed_ms=timer.elapsed_ms)


def run_enqueue(ctx: OperationContext, *, force: bool = False) -> OperationResult[str]:
    """One throttled change + deletion scan."""
    timer = start_timer()
    try:
        with LogContext(op="run_enqueue", request_id=ctx.request_id, caller=ctx.caller):
            status = build_enqueue_run(ctx.conn, ctx.settings, clock=ctx.clock).run(force=force)
    except VectorSyncError as exc:
        logger.error("op_failed", op="run_enqueue", error=str(exc))
        return OperationResult.from_error("ENQUEUE_FAILED", exc, elapsed_ms=timer.elapsed_ms)

    if status == STORE_NOT_CONNECTED:
        return OperationResult.fail("STORE_UNAVAILABLE", status, retryable=True, elapsed_ms=timer.elapsed_ms)
    if status.startswith(FAILED):
        return OperationResult.fail("ENQUEUE_FAILED", status, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(status, elapsed_ms=timer.elapsed_ms)


def run_worker(
    ctx: OperationContext,
    executor: EmbeddingExecutor | str,
    *,
    limit: int = 0,
) -> OperationResult[str]:
    """One claim → execute → ack/fail batch.

    *executor* is an executor object or a ``'module:attr'`` reference.
    """
    timer = start_timer()
    try:
        if isinstance(executor, str):
            executor = resolve_executor(executor)
    except ConfigError as exc:
        return OperationResult.from_error("VALIDATION_FAILED", exc, elapsed_ms=timer.elapsed_ms)

    with LogContext(op="run_worker", request_id=ctx.request_id, caller=ctx.caller):
        status = build_worker_run(ctx.conn, ctx.settings, executor, limit=limit, clock=ctx.clock).run()
    if status == STORE_NOT_CONNECTED:
        return OperationResult.fail("STORE_UNAVAILABLE", status, retryable=True, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(status, elapsed_ms=timer.elapsed_ms)


__all__ = ["init_db", "run_enqueue", "run_worker"]
