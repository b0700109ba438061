"""
Tests for CheckpointStore.

Covers creation at the epoch, throttle decisions and forward-only advancement.
"""

from vectorsync.core.checkpoint import CheckpointStore
from vectorsync.core.timestamps import EPOCH


class TestLoad:
    def test_creates_at_epoch(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        cp = store.load("entries")
        assert cp.name == "entries"
        assert cp.last_changed == EPOCH
        assert cp.last_run_at is None

    def test_load_is_idempotent(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        store.load("entries")
        store.advance("entries", "2026-02-01 00:00:00")
        assert store.load("entries").last_changed == "2026-02-01 00:00:00"


class TestShouldRun:
    def test_never_ran(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        assert store.should_run(store.load("entries"))

    def test_throttled_until_interval_elapsed(self, conn, clock):
        store = CheckpointStore(conn, min_interval_seconds=900, clock=clock)
        store.load("entries")
        store.touch("entries")
        assert not store.should_run(store.load("entries"))
        clock.advance(seconds=899)
        assert not store.should_run(store.load("entries"))
        clock.advance(seconds=1)
        assert store.should_run(store.load("entries"))

    def test_zero_interval_always_runs(self, conn, clock):
        store = CheckpointStore(conn, min_interval_seconds=0, clock=clock)
        store.load("entries")
        store.touch("entries")
        assert store.should_run(store.load("entries"))


class TestAdvance:
    def test_moves_forward(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        store.load("entries")
        assert store.advance("entries", "2026-02-01 00:00:00")

    def test_never_moves_backwards(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        store.load("entries")
        store.advance("entries", "2026-02-01 00:00:00")
        assert not store.advance("entries", "2026-01-01 00:00:00")
        assert not store.advance("entries", "2026-02-01 00:00:00")
        assert store.load("entries").last_changed == "2026-02-01 00:00:00"

    def test_checkpoints_are_independent(self, conn, clock):
        store = CheckpointStore(conn, clock=clock)
        store.load("a")
        store.load("b")
        store.advance("a", "2026-02-01 00:00:00")
        assert store.load("b").last_changed == EPOCH
