"""Job queue: producers (scanners), consumer (claimer), ack/fail, lease reaping.

Architecture::

    EnqueueRun ─► ChangeScanner ─┐                 ┌─► Claimer ─► WorkItem ─► executor
                 DeletionScanner ┴─► embedding_job ┤                             │
                                     embedding_seen └─◄ Acker ◄──────────────────┘
                                                     ◄ LeaseReaper (expired leases)

Tags:
    queue, scanner, claim, ack, vectorsync
"""

from .acker import Acker
from .claimer import Claimer
from .enqueue import FAILED, SKIPPED, STORE_NOT_CONNECTED, EnqueueRun
from .reaper import LeaseReaper, ReapResult
from .scanner import ChangeScanner, DeletionScanner, ScanResult
from .worker import WorkerRun, resolve_executor

__all__ = [
    "Acker",
    "ChangeScanner",
    "Claimer",
    "DeletionScanner",
    "EnqueueRun",
    "LeaseReaper",
    "ReapResult",
    "FAILED",
    "SKIPPED",
    "STORE_NOT_CONNECTED",
    "ScanResult",
    "WorkerRun",
    "resolve_executor",
]
