"""Tests for vectorsync.core.dialect."""

import pytest

from vectorsync.core.dialect import Dialect, SQLiteDialect
from vectorsync.core.hashing import normalize_hex


class TestSQLiteDialect:
    def setup_method(self):
        self.d = SQLiteDialect()

    def test_satisfies_protocol(self):
        assert isinstance(self.d, Dialect)

    def test_placeholders(self):
        assert self.d.placeholders(3) == "?, ?, ?"

    def test_insert_or_ignore(self):
        sql = self.d.insert_or_ignore("t", ["a", "b"])
        assert sql == "INSERT OR IGNORE INTO t (a, b) VALUES (?, ?)"

    def test_upsert_updates_non_key_columns(self):
        sql = self.d.upsert("t", ["k", "v"], ["k"])
        assert "ON CONFLICT (k) DO UPDATE SET v = excluded.v" in sql

    def test_auto_increment(self):
        assert "AUTOINCREMENT" in self.d.auto_increment()


class TestUuidKey:
    """The SQL spelling must agree with ``normalize_hex``."""

    @pytest.mark.parametrize(
        "stored",
        [
            "0F8FAD5BD9CB469FA16570867728950E",
            "0f8fad5b-d9cb-469f-a165-70867728950e",
            "{0F8FAD5B-D9CB-469F-A165-70867728950E}",
            "  0f8fad5bd9cb469fa16570867728950e ",
        ],
    )
    def test_text_spellings(self, conn, stored):
        d = SQLiteDialect()
        row = conn.execute(f"SELECT {d.uuid_key('v')} AS k FROM (SELECT ? AS v)", (stored,)).fetchone()
        assert row["k"] == normalize_hex(stored)

    def test_blob(self, conn):
        d = SQLiteDialect()
        raw = bytes.fromhex("0F8FAD5BD9CB469FA16570867728950E")
        row = conn.execute(f"SELECT {d.uuid_key('v')} AS k FROM (SELECT ? AS v)", (raw,)).fetchone()
        assert row["k"] == normalize_hex(raw)
