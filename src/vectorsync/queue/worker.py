"""One scheduled worker invocation.

:class:`WorkerRun` claims a batch, hands each item to an
:class:`~vectorsync.core.protocols.EmbeddingExecutor`, and acks or fails it.
Executor exceptions never escape the run; they are classified with
:func:`~vectorsync.core.errors.is_retryable` and routed to ``fail``.

Usage (programmatic)::

    from vectorsync.queue.worker import WorkerRun, resolve_executor

    run = WorkerRun(claimer, acker, resolve_executor("myapp.vectors:Indexer"))
    print(run.run())   # "Worker done - items: 5, failed: 0"

Usage (CLI)::

    vectorsync worker run --executor myapp.vectors:Indexer --limit 20
"""

from __future__ import annotations

import importlib
import inspect
from collections.abc import Callable
from typing import Any

from vectorsync.core.errors import InvalidConfigError, is_retryable
from vectorsync.core.logging import get_logger
from vectorsync.core.models import WorkItem
from vectorsync.core.protocols import EmbeddingExecutor

from .acker import Acker
from .claimer import Claimer
from .enqueue import STORE_NOT_CONNECTED

logger = get_logger(__name__)


class WorkerRun:
    """Claim → execute → ack/fail for one batch."""

    def __init__(
        self,
        claimer: Claimer | None,
        acker: Acker | None,
        executor: EmbeddingExecutor,
        *,
        limit: int = 0,
    ) -> None:
        self.claimer = claimer
        self.acker = acker
        self.executor = executor
        self.limit = limit

    def run(self) -> str:
        if self.claimer is None or self.acker is None:
            logger.error("worker.store_unavailable")
            return STORE_NOT_CONNECTED

        items = self.claimer.claim(self.limit)
        failed = 0
        for item in items:
            if not self._process(item):
                failed += 1

        logger.info("worker.done", items=len(items), failed=failed)
        return f"Worker done - items: {len(items)}, failed: {failed}"

    def _process(self, item: WorkItem) -> bool:
        try:
            self.executor.execute(item)
        except Exception as exc:  # noqa: BLE001
            retryable = is_retryable(exc)
            logger.warning(
                "worker.item_failed",
                job_id=item.job_id,
                action=item.action.value,
                retryable=retryable,
                error=str(exc),
            )
            self.acker.fail(item, f"{type(exc).__name__}: {exc}", retryable=retryable)
            return False

        self.acker.ack(item)
        return True


# =============================================================================
# Executor resolution
# =============================================================================


class CallableExecutor:
    """Adapts a plain ``fn(item)`` to the executor protocol."""

    def __init__(self, fn: Callable[[WorkItem], Any]) -> None:
        self.fn = fn

    def execute(self, item: WorkItem) -> None:
        self.fn(item)


class LoggingExecutor:
    """Logs each item and succeeds.  For dry runs and smoke tests."""

    def execute(self, item: WorkItem) -> None:
        logger.info(
            "executor.item",
            job_id=item.job_id,
            action=item.action.value,
            collection_key=item.collection_key,
            content_hash=item.content_hash,
            size=item.size,
        )


def resolve_executor(ref: str) -> EmbeddingExecutor:
    """Import ``'module:attr'`` and return an executor.

    A class is instantiated without arguments; an object with an
    ``execute`` method is used as is; any other callable is wrapped.
    """
    module_path, _, attr_path = ref.partition(":")
    if not module_path or not attr_path:
        raise InvalidConfigError("executor", ref, f"Invalid executor ref (expected 'module:attr'): {ref!r}")
    try:
        obj: Any = importlib.import_module(module_path)
        for part in attr_path.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as exc:
        raise InvalidConfigError("executor", ref, f"Cannot resolve executor {ref!r}: {exc}") from exc

    if inspect.isclass(obj):
        obj = obj()
    if callable(getattr(obj, "execute", None)):
        return obj
    if callable(obj):
        return CallableExecutor(obj)
    raise InvalidConfigError("executor", ref, f"{ref!r} is neither an executor nor callable")


__all__ = [
    "WorkerRun",
    "CallableExecutor",
    "LoggingExecutor",
    "resolve_executor",
]
