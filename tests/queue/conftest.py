"""Queue component fixtures wired to the shared in-memory store and fake clock."""

import pytest

from vectorsync.queue.acker import Acker
from vectorsync.queue.claimer import Claimer
from vectorsync.queue.enqueue import EnqueueRun
from vectorsync.queue.reaper import LeaseReaper
from vectorsync.queue.scanner import ChangeScanner, DeletionScanner


@pytest.fixture()
def change_scanner(jobs, seen, source, clock):
    return ChangeScanner(jobs, seen, source, clock=clock)


@pytest.fixture()
def deletion_scanner(jobs, seen, clock):
    return DeletionScanner(jobs, seen, entry_table="source_entry", clock=clock)


@pytest.fixture()
def acker(jobs, seen, clock):
    return Acker(jobs, seen, max_attempts=3, clock=clock)


@pytest.fixture()
def reaper(jobs, clock):
    return LeaseReaper(jobs, max_attempts=3, clock=clock)


@pytest.fixture()
def claimer(jobs, seen, source, acker, reaper, clock):
    return Claimer(
        jobs,
        seen,
        source,
        acker=acker,
        access=source,
        annotations=source,
        reaper=reaper,
        lease_seconds=600,
        clock=clock,
    )


@pytest.fixture()
def enqueue_run(conn, source, clock):
    return EnqueueRun(conn, source, min_interval_seconds=900, clock=clock)
