"""
Typed records that flow through the queue.

Rows read from the store are converted into these dataclasses at the
repository boundary; everything above the repositories works with
attributes, never with raw row dicts.  Source-side records keep an explicit
``extra`` map for attributes the queue does not interpret, so a richer
source schema passes through without being dropped.

Tags:
    models, dataclass, queue, vectorsync

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from vectorsync.core.enums import JobState, JobType

# =============================================================================
# Source side (read-only)
# =============================================================================


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One changed row as seen by the change scanner.

    Attributes:
        uuid: Normalized upper-case hex identity.
        version: Opaque change tag (etag), normalized hex.
        changed_at: Change timestamp in stored text form.
        type_alias: Alias of the owning type; selects the collection.
        extra: Forward-compatible attributes not interpreted by the queue.
    """

    uuid: str
    version: str
    changed_at: str
    type_alias: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Owning type of a source entry and the table holding its payload."""

    id: int
    alias: str
    table: str


@dataclass(frozen=True, slots=True)
class ResolvedEntry:
    """A live source entry resolved for payload loading."""

    id: int
    uuid: str
    version: str
    type: TypeDescriptor
    created_at: str | None = None
    changed_at: str | None = None
    archived: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Queue side (persisted)
# =============================================================================


@dataclass(slots=True)
class SeenRecord:
    """Ledger row: last known state of a source entity."""

    source_uuid: str
    last_seen_version: str
    last_seen_changed: str
    last_seen_at: str
    last_seen_collection_key: str
    missing_since: str | None = None
    delete_job_id: int | None = None
    deleted_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SeenRecord:
        return cls(
            source_uuid=row["source_uuid"],
            last_seen_version=row["last_seen_version"],
            last_seen_changed=row["last_seen_changed"],
            last_seen_at=row["last_seen_at"],
            last_seen_collection_key=row["last_seen_collection_key"],
            missing_since=row.get("missing_since"),
            delete_job_id=row.get("delete_job_id"),
            deleted_at=row.get("deleted_at"),
        )


@dataclass(slots=True)
class Job:
    """Queue row.

    ``job_type`` is kept as the raw stored string so that a row written by a
    newer or broken producer still loads and can be failed cleanly; use
    :attr:`type` for the parsed value.
    """

    job_id: int
    source_uuid: str
    source_version: str | None
    collection_key: str
    job_type: str
    state: JobState
    priority: int = 1
    attempts: int = 0
    lease_until: str | None = None
    claim_token: str | None = None
    claimed_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    error_message: str | None = None

    @property
    def type(self) -> JobType | None:
        try:
            return JobType((self.job_type or "").strip().lower())
        except ValueError:
            return None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Job:
        return cls(
            job_id=int(row["job_id"]),
            source_uuid=row.get("source_uuid") or "",
            source_version=row.get("source_version") or None,
            collection_key=row.get("collection_key") or "",
            job_type=row.get("job_type") or "",
            state=JobState(row["state"]),
            priority=int(row.get("priority") or 0),
            attempts=int(row.get("attempts") or 0),
            lease_until=row.get("lease_until"),
            claim_token=row.get("claim_token"),
            claimed_at=row.get("claimed_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            error_message=row.get("error_message"),
        )


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Named scan cursor plus last-run timestamp (``None``: never ran)."""

    name: str
    last_changed: str
    last_run_at: str | None = None


# =============================================================================
# Work items (ephemeral)
# =============================================================================


@dataclass(slots=True)
class DomainMetadata:
    """Filterable facts about an entity, handed to the payload normalizer."""

    content_uuid: str
    content_version: str | None = None
    type_alias: str | None = None
    archive: int | None = None
    public: int | None = None
    tags: list[str] = field(default_factory=list)
    ref_uuids: list[str] = field(default_factory=list)
    name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flat dict with unset optional facts omitted."""
        result: dict[str, Any] = {
            "content_uuid": self.content_uuid,
            "content_version": self.content_version,
        }
        for key in ("type_alias", "archive", "public", "name"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.tags:
            result["tags"] = list(self.tags)
        if self.ref_uuids:
            result["ref_uuids"] = list(self.ref_uuids)
        result.update(self.extra)
        return result


@dataclass(frozen=True, slots=True)
class PayloadSnapshot:
    """Full source row plus type descriptor for an upsert."""

    entry: dict[str, Any]
    type: TypeDescriptor
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": dict(self.entry),
            "type": {"id": self.type.id, "alias": self.type.alias, "table": self.type.table},
            "payload": dict(self.payload),
        }


UPSERT_CONTENT_TYPE = "application/x-vectorsync-entry+json"
DELETE_CONTENT_TYPE = "application/x-vectorsync-delete"


@dataclass(frozen=True, slots=True)
class WorkItem:
    """One claimed job resolved into what the executor consumes.

    Created by the claimer, consumed once, then acked or failed through the
    ``claim_token`` it carries.
    """

    job_id: int
    action: JobType
    collection_key: str
    content_hash: str
    metadata: DomainMetadata
    claim_token: str
    attempts: int = 1
    payload: PayloadSnapshot | None = None
    content_type: str = DELETE_CONTENT_TYPE
    size: int = 0

    @property
    def is_delete(self) -> bool:
        return self.action is JobType.DELETE

    @property
    def source_uuid(self) -> str:
        return self.metadata.content_uuid


__all__ = [
    "SourceRecord",
    "TypeDescriptor",
    "ResolvedEntry",
    "SeenRecord",
    "Job",
    "Checkpoint",
    "DomainMetadata",
    "PayloadSnapshot",
    "WorkItem",
    "UPSERT_CONTENT_TYPE",
    "DELETE_CONTENT_TYPE",
]
