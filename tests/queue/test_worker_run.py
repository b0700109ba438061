"""Tests for WorkerRun and executor resolution."""

import pytest

from tests._support.store import make_uuid
from vectorsync.core.enums import JobState
from vectorsync.core.errors import ExecutorError, InvalidConfigError, JobDataError
from vectorsync.core.timestamps import EPOCH
from vectorsync.queue.enqueue import STORE_NOT_CONNECTED
from vectorsync.queue.worker import (
    CallableExecutor,
    LoggingExecutor,
    WorkerRun,
    resolve_executor,
)

T1 = "2026-02-01 10:00:00"


class RecordingExecutor:
    def __init__(self, fail_on=None, exc=None):
        self.seen = []
        self.fail_on = fail_on or set()
        self.exc = exc or RuntimeError("boom")

    def execute(self, item):
        self.seen.append(item)
        if item.source_uuid in self.fail_on:
            raise self.exc


def recording_function(item):
    recording_function.calls.append(item.job_id)


recording_function.calls = []
NOT_CALLABLE = 42


@pytest.fixture()
def seeded(source_db, change_scanner):
    for n in (1, 2, 3):
        source_db.add_entry(make_uuid(n), f"A{n}", T1)
    change_scanner.scan(100, EPOCH)


class TestWorkerRun:
    def test_no_store(self):
        assert WorkerRun(None, None, LoggingExecutor()).run() == STORE_NOT_CONNECTED

    def test_empty_queue(self, claimer, acker):
        assert WorkerRun(claimer, acker, LoggingExecutor()).run() == "Worker done - items: 0, failed: 0"

    def test_all_succeed(self, claimer, acker, jobs, seeded):
        executor = RecordingExecutor()
        status = WorkerRun(claimer, acker, executor, limit=10).run()
        assert status == "Worker done - items: 3, failed: 0"
        assert jobs.count_by_state()["done"] == 3

    def test_failures_counted_and_retried(self, claimer, acker, jobs, seeded):
        executor = RecordingExecutor(fail_on={make_uuid(2)})
        assert WorkerRun(claimer, acker, executor, limit=10).run() == "Worker done - items: 3, failed: 1"
        counts = jobs.count_by_state()
        assert counts["done"] == 2
        assert counts["pending"] == 1
        failed = jobs.list_jobs(state="pending")[0][0]
        assert failed.error_message == "RuntimeError: boom"

    def test_non_retryable_error(self, claimer, acker, jobs, seeded):
        executor = RecordingExecutor(fail_on={make_uuid(1)}, exc=JobDataError("bad vector"))
        WorkerRun(claimer, acker, executor, limit=10).run()
        assert jobs.count_by_state()["error"] == 1

    def test_retryable_executor_error(self, claimer, acker, jobs, seeded):
        executor = RecordingExecutor(fail_on={make_uuid(1)}, exc=ExecutorError("503"))
        WorkerRun(claimer, acker, executor, limit=10).run()
        assert jobs.count_by_state()["pending"] == 1

    def test_limit(self, claimer, acker, seeded):
        executor = RecordingExecutor()
        assert WorkerRun(claimer, acker, executor, limit=2).run() == "Worker done - items: 2, failed: 0"


class TestResolveExecutor:
    def test_class_instantiated(self):
        executor = resolve_executor("vectorsync.queue.worker:LoggingExecutor")
        assert isinstance(executor, LoggingExecutor)

    def test_plain_function_wrapped(self):
        executor = resolve_executor(f"{__name__}:recording_function")
        assert isinstance(executor, CallableExecutor)

    def test_object_with_execute(self):
        executor = resolve_executor(f"{__name__}:RecordingExecutor")
        assert isinstance(executor, RecordingExecutor)

    @pytest.mark.parametrize(
        "ref",
        [
            "no_colon",
            ":attr",
            "vectorsync.nope:thing",
            "vectorsync.queue.worker:Missing",
            f"{__name__}:NOT_CALLABLE",
        ],
    )
    def test_invalid(self, ref):
        with pytest.raises(InvalidConfigError):
            resolve_executor(ref)


class TestCallableExecutor:
    def test_delegates(self, claimer, seeded):
        recording_function.calls.clear()
        item = claimer.claim(1)[0]
        CallableExecutor(recording_function).execute(item)
        assert recording_function.calls == [item.job_id]
