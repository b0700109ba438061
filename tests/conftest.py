"""
Shared pytest fixtures for vectorsync tests.

This module provides:
- A controllable clock so lease and throttle tests never sleep
- In-memory SQLite stores with the queue and default source tables
- A small ``SourceDB`` helper for writing source entries

Usage:
    Fixtures are auto-discovered by pytest; request them by argument name.

    def test_claim(conn, source_db, clock):
        ...
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tests._support.store import FakeClock, SourceDB
from vectorsync.core.connection import SqliteConnection
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.schema import create_tables
from vectorsync.core.settings import VectorSyncSettings, clear_settings_cache
from vectorsync.source.sql import SqlEntrySource, create_source_tables

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_settings_cache() -> Generator[None, None, None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def conn() -> Generator[SqliteConnection, None, None]:
    """In-memory store with queue and default source tables."""
    c = SqliteConnection(":memory:")
    create_tables(c)
    create_source_tables(c)
    yield c
    c.close()


@pytest.fixture()
def jobs(conn: SqliteConnection) -> JobRepository:
    return JobRepository(conn)


@pytest.fixture()
def seen(conn: SqliteConnection) -> SeenRepository:
    return SeenRepository(conn)


@pytest.fixture()
def source(conn: SqliteConnection) -> SqlEntrySource:
    return SqlEntrySource(conn)


@pytest.fixture()
def source_db(conn: SqliteConnection) -> SourceDB:
    return SourceDB(conn)


@pytest.fixture()
def settings(tmp_path) -> VectorSyncSettings:
    return VectorSyncSettings(database_path=tmp_path / "vectorsync.db")
