"""Tests for vectorsync.core.logging context helpers."""

import structlog

from vectorsync.core.logging import LogContext, _add_service_metadata, bind_context, unbind_context


class TestContextHelpers:
    def teardown_method(self):
        structlog.contextvars.clear_contextvars()

    def test_bind_and_unbind(self):
        bind_context(run="enqueue")
        assert structlog.contextvars.get_contextvars()["run"] == "enqueue"
        unbind_context("run")
        assert "run" not in structlog.contextvars.get_contextvars()

    def test_log_context_scoped(self):
        with LogContext(worker="w1", claim_token="abc"):
            assert structlog.contextvars.get_contextvars()["worker"] == "w1"
        assert "worker" not in structlog.contextvars.get_contextvars()


class TestServiceMetadata:
    def test_adds_service_name(self):
        event = _add_service_metadata(None, "info", {"event": "x"})
        assert event["service.name"] == "vectorsync"

    def test_keeps_explicit_value(self):
        event = _add_service_metadata(None, "info", {"event": "x", "service.name": "other"})
        assert event["service.name"] == "other"
