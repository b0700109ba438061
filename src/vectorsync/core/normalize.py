"""Normalization of filterable entity facts.

Tags and related uuids arrive from the source in whatever shape it stores
them.  Before they reach the executor they are reduced to one canonical
spelling so that equal facts produce equal vector payloads.
"""

from __future__ import annotations

from collections.abc import Iterable

from vectorsync.core.hashing import is_uuid_hex, normalize_hex


def normalize_tags(tags: Iterable[str | None]) -> list[str]:
    """Trimmed, lower-cased, de-duplicated, sorted; blanks dropped."""
    out = {str(t).strip().lower() for t in tags if t is not None}
    out.discard("")
    return sorted(out)


def normalize_ref_uuids(uuids: Iterable[str | bytes | None]) -> list[str]:
    """Upper-case 32-char hex, de-duplicated, first occurrence order kept."""
    out: list[str] = []
    seen: set[str] = set()
    for value in uuids:
        hex_value = normalize_hex(value)
        if not is_uuid_hex(hex_value) or hex_value in seen:
            continue
        seen.add(hex_value)
        out.append(hex_value)
    return out


def normalize_name(name: str | None) -> str | None:
    if name is None:
        return None
    name = str(name).strip()
    return name or None
