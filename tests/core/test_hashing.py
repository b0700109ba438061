"""
Tests for vectorsync.core.hashing and vectorsync.core.normalize.
"""

import hashlib

import pytest

from vectorsync.core.hashing import content_hash, is_uuid_hex, normalize_hex
from vectorsync.core.normalize import normalize_name, normalize_ref_uuids, normalize_tags


class TestNormalizeHex:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0f8fad5b-d9cb-469f-a165-70867728950e", "0F8FAD5BD9CB469FA16570867728950E"),
            ("  {0F8FAD5B-D9CB-469F-A165-70867728950E} ", "0F8FAD5BD9CB469FA16570867728950E"),
            ("ab12", "AB12"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_strings(self, raw, expected):
        assert normalize_hex(raw) == expected

    def test_bytes(self):
        assert normalize_hex(b"\x0f\xab") == "0FAB"

    def test_is_uuid_hex(self):
        assert is_uuid_hex("0F8FAD5BD9CB469FA16570867728950E")
        assert not is_uuid_hex("0F8FAD5B")
        assert not is_uuid_hex("0f8fad5bd9cb469fa16570867728950e")


class TestContentHash:
    def test_matches_documented_formula(self):
        expected = hashlib.sha256(b"xrm:0F8F:AB").hexdigest()
        assert content_hash("xrm", "0F8F", "AB") == expected

    def test_missing_version_is_empty(self):
        expected = hashlib.sha256(b"xrm:0F8F:").hexdigest()
        assert content_hash("xrm", "0F8F", None) == expected

    def test_collection_changes_hash(self):
        assert content_hash("a", "0F8F", "AB") != content_hash("b", "0F8F", "AB")


class TestNormalizeTags:
    def test_trim_lower_dedupe_sort(self):
        assert normalize_tags([" Beta", "alpha", "ALPHA ", "", None, "beta"]) == ["alpha", "beta"]

    def test_empty(self):
        assert normalize_tags([]) == []


class TestNormalizeRefUuids:
    def test_keeps_only_full_length_hex(self):
        good = "0f8fad5b-d9cb-469f-a165-70867728950e"
        out = normalize_ref_uuids([good, "ABC", None, good.upper().replace("-", "")])
        assert out == ["0F8FAD5BD9CB469FA16570867728950E"]

    def test_preserves_first_occurrence_order(self):
        a = "A" * 32
        b = "B" * 32
        assert normalize_ref_uuids([b, a, b]) == [b, a]


class TestNormalizeName:
    def test_blank_is_none(self):
        assert normalize_name("   ") is None
        assert normalize_name(None) is None

    def test_trimmed(self):
        assert normalize_name("  Ada Lovelace ") == "Ada Lovelace"
