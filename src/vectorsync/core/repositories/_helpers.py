"""Shared helpers for repository classes.

Tags:
    vectorsync, repository, helpers
"""

from __future__ import annotations

from typing import Any


def _build_where(
    conditions: dict[str, Any],
    dialect_ph: Any,
    *,
    extra_clauses: list[str] | None = None,
) -> tuple[str, tuple]:
    """Build a WHERE clause from a conditions dict.

    Returns ``(where_fragment, params_tuple)``.  Skips ``None`` values.
    ``extra_clauses`` are appended literally (no params).
    """
    parts: list[str] = []
    params: list[Any] = []
    for col, val in conditions.items():
        if val is None:
            continue
        parts.append(f"{col} = {dialect_ph(1)}")
        params.append(val)
    if extra_clauses:
        parts.extend(extra_clauses)
    where = " AND ".join(parts) if parts else "1=1"
    return where, tuple(params)
