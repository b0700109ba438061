"""
Deterministic hashing and identifier normalization.

Source identities (UUIDs, version tags) arrive in whatever shape the system
of record uses: dashed or bare, upper or lower case.  The queue stores and
compares them as **upper-case hex without separators** so that the unique
job key, the seen ledger and the content hash all agree on one spelling.

Content Hash (idempotency key for the executor):
    ┌────────────────────────────────────────────────────────────┐
    │ sha256(collection_key + ":" + uuid_hex + ":" + version_hex)│
    │                                                            │
    │ Same entity + same version → same hash, whatever job id   │
    └────────────────────────────────────────────────────────────┘

Examples:
    >>> normalize_hex("0f8fad5b-d9cb-469f-a165-70867728950e")
    '0F8FAD5BD9CB469FA16570867728950E'
    >>> len(content_hash("xrm", "0F8F", "AB"))
    64

Tags:
    hashing, idempotency, normalization, vectorsync
"""

from __future__ import annotations

import hashlib
import re

_NON_HEX = re.compile(r"[^0-9A-F]")

UUID_HEX_LENGTH = 32


def normalize_hex(value: str | bytes | None) -> str:
    """Upper-case hex spelling of an identifier; ``""`` for empty input.

    ``bytes`` are hex-encoded (binary UUID columns); strings are trimmed,
    upper-cased and stripped of dashes, braces and other separators.
    """
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.hex().upper()
    return _NON_HEX.sub("", value.strip().upper())


def is_uuid_hex(value: str) -> bool:
    """True for a normalized 128-bit identifier."""
    return len(value) == UUID_HEX_LENGTH and not _NON_HEX.search(value)


def content_hash(collection_key: str, uuid_hex: str, version_hex: str | None) -> str:
    """Executor idempotency key for one entity version in one collection."""
    raw = f"{collection_key}:{uuid_hex}:{version_hex or ''}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


__all__ = [
    "UUID_HEX_LENGTH",
    "normalize_hex",
    "is_uuid_hex",
    "content_hash",
]
