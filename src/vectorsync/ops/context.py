"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument.  The context carries the database connection, the settings the
queue components are built from, the caller identity, and the dry-run flag.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from vectorsync.core.protocols import Connection
from vectorsync.core.settings import VectorSyncSettings, get_settings
from vectorsync.core.timestamps import Clock, utc_now


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        conn: Shared store, or ``None`` when it could not be opened.
        settings: Queue configuration (defaults to :func:`get_settings`).
        request_id: Unique ID for this invocation (auto-generated).
        caller: Origin of the request: ``"cli"``, ``"sdk"`` or ``"scheduler"``.
        dry_run: When ``True``, mutating operations report what they would do.
        clock: Source of "now" handed to queue components.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    conn: Connection | None
    settings: VectorSyncSettings = field(default_factory=get_settings)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    dry_run: bool = False
    clock: Clock = utc_now
    metadata: dict[str, Any] = field(default_factory=dict)
