"""Shared fixtures for vectorsync.ops tests."""

import pytest

from vectorsync.ops.context import OperationContext


@pytest.fixture()
def ctx(conn, settings, clock) -> OperationContext:
    """Default OperationContext wired to the shared in-memory store."""
    return OperationContext(conn=conn, settings=settings, caller="test", clock=clock)


@pytest.fixture()
def dry_ctx(conn, settings, clock) -> OperationContext:
    """OperationContext with dry_run=True."""
    return OperationContext(conn=conn, settings=settings, caller="test", dry_run=True, clock=clock)


@pytest.fixture()
def no_store_ctx(settings, clock) -> OperationContext:
    return OperationContext(conn=None, settings=settings, caller="test", clock=clock)
