"""vectorsync configuration.

All knobs of the queue live in one :class:`VectorSyncSettings` object read
from ``VECTORSYNC_*`` environment variables and an optional ``.env`` file.
Components take plain values in their constructors; only the bootstrap code
(CLI, scheduler entry points) reads settings, and it does so once via
:func:`get_settings`.

Examples:
    >>> from vectorsync.core.settings import VectorSyncSettings
    >>> s = VectorSyncSettings(claim_limit=20)
    >>> s.lease_seconds
    600

Tags:
    settings, configuration, pydantic, environment, vectorsync
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CLAIM_LIMIT = 5


class VectorSyncSettings(BaseSettings):
    """Queue, scanner, worker and source-schema configuration.

    Fields
    ──────
    database_path          : SQLite file holding queue tables (and source tables)
    min_interval_seconds   : Scan throttle between two enqueue runs
    change_batch/delete_batch : Rows per change scan / deletion scan
    claim_limit            : Jobs per claim batch (<= 0 falls back to 5)
    lease_minutes          : How long a claim stays exclusive
    max_attempts           : Retry ceiling before a job becomes ``error``
    """

    model_config = SettingsConfigDict(
        env_prefix="VECTORSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".vectorsync" / "vectorsync.db",
        description="SQLite database shared by scanners and workers",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Enqueue (scanners) ───────────────────────────────────────
    checkpoint_name: str = "entries"
    min_interval_seconds: int = Field(default=900, ge=0)
    change_batch: int = Field(default=5000, gt=0)
    delete_batch: int = Field(default=2000, gt=0)
    default_collection_key: str = "default"
    default_priority: int = 1

    # ── Claim / ack ──────────────────────────────────────────────
    claim_limit: int = DEFAULT_CLAIM_LIMIT
    lease_minutes: int = Field(default=10, gt=0)
    max_attempts: int = Field(default=5, gt=0)
    reap_expired_leases: bool = True
    error_message_limit: int = Field(default=4000, gt=0)

    # ── Source schema ────────────────────────────────────────────
    entry_table: str = "source_entry"
    type_table: str = "source_type"
    access_table: str = "source_access"
    tag_table: str = "source_tag"
    name_table: str = "source_name"
    relation_table: str = "source_relation"
    public_user_id: int = 1
    public_mode: str = "visitor"

    @field_validator("claim_limit")
    @classmethod
    def _positive_claim_limit(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_CLAIM_LIMIT

    @field_validator("default_collection_key")
    @classmethod
    def _non_blank_collection(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("default_collection_key must not be blank")
        return value

    @property
    def lease_seconds(self) -> int:
        return self.lease_minutes * 60


_settings: VectorSyncSettings | None = None


def get_settings(*, _force_reload: bool = False) -> VectorSyncSettings:
    """Load, validate, and cache the process-wide settings."""
    global _settings
    if _settings is None or _force_reload:
        _settings = VectorSyncSettings()
    return _settings


def clear_settings_cache() -> None:
    """Forget the cached settings (tests, config reload)."""
    global _settings
    _settings = None


__all__ = [
    "DEFAULT_CLAIM_LIMIT",
    "VectorSyncSettings",
    "get_settings",
    "clear_settings_cache",
]
