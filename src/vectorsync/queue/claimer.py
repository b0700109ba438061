"""
Consumer side of the queue: claim a batch and resolve it into work items.

Claim protocol::

    reap expired leases (optional)
        │
    select_claimable(limit)        pending, lease free, priority DESC, id ASC
        │
    claim(ids, token)              one conditional UPDATE … WHERE state='pending'
        │
    load_claimed(token)            exactly the rows this claimer won
        │
    per job:
        unsupported type / missing field   → fail (non-retryable)
        upsert whose ledger moved on       → superseded
        entry / type / payload unresolved  → fail (non-retryable)
        otherwise                          → WorkItem

Two claimers racing for the same ids both run the UPDATE; the database
applies them one after the other and the second finds those rows no longer
``pending``.  Each then re-reads by its own token, so a job is handed to at
most one of them.

Tags:
    claim, lease, queue, consumer, vectorsync
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from vectorsync.core.enums import JobType
from vectorsync.core.errors import (
    DatabaseConnectionError,
    DatabaseError,
    JobDataError,
    MissingJobFieldError,
    PayloadNotFoundError,
    UnresolvableEntryError,
    UnsupportedJobTypeError,
    VectorSyncError,
)
from vectorsync.core.hashing import content_hash, normalize_hex
from vectorsync.core.logging import get_logger
from vectorsync.core.models import (
    DELETE_CONTENT_TYPE,
    UPSERT_CONTENT_TYPE,
    DomainMetadata,
    Job,
    PayloadSnapshot,
    ResolvedEntry,
    WorkItem,
)
from vectorsync.core.normalize import normalize_name, normalize_ref_uuids, normalize_tags
from vectorsync.core.protocols import AccessPolicy, EntryAnnotations, RowResolver
from vectorsync.core.repositories import JobRepository, SeenRepository
from vectorsync.core.settings import DEFAULT_CLAIM_LIMIT
from vectorsync.core.timestamps import Clock, add_seconds, format_ts, utc_now

from .acker import Acker
from .reaper import LeaseReaper

logger = get_logger(__name__)


class Claimer:
    """Claims pending jobs and turns them into :class:`WorkItem` objects.

    Args:
        jobs: Job repository.
        seen: Seen ledger repository, consulted for claim-time staleness.
        resolver: Resolves uuids to entries and entries to payload rows.
        acker: Used to fail jobs that cannot become work items.
        access: Public-visibility policy; omitted from metadata when None.
        annotations: Tag/relation/name lookups; omitted when None.
        reaper: Run before every claim when given.
        lease_seconds: Claim lease length.
        default_limit: Batch size used when ``claim`` gets a limit <= 0.
        clock: Source of "now".
    """

    def __init__(
        self,
        jobs: JobRepository,
        seen: SeenRepository,
        resolver: RowResolver,
        *,
        acker: Acker | None = None,
        access: AccessPolicy | None = None,
        annotations: EntryAnnotations | None = None,
        reaper: LeaseReaper | None = None,
        lease_seconds: int = 600,
        default_limit: int = DEFAULT_CLAIM_LIMIT,
        clock: Clock = utc_now,
    ) -> None:
        self.jobs = jobs
        self.seen = seen
        self.resolver = resolver
        self.acker = acker or Acker(jobs, seen, clock=clock)
        self.access = access
        self.annotations = annotations
        self.reaper = reaper
        self.lease_seconds = lease_seconds
        self.default_limit = default_limit if default_limit > 0 else DEFAULT_CLAIM_LIMIT
        self._clock = clock

    # -- claim ---------------------------------------------------------------

    def claim(self, limit: int = 0) -> list[WorkItem]:
        """Claim up to *limit* jobs.  Never raises on store failure."""
        if limit <= 0:
            limit = self.default_limit

        try:
            claimed, token = self._claim_rows(limit)
        except (DatabaseError, DatabaseConnectionError) as exc:
            self._rollback()
            logger.error("claim.store_failed", error=str(exc))
            return []

        if not claimed:
            return []

        items: list[WorkItem] = []
        for job in claimed:
            item = self._prepare(job, token)
            if item is not None:
                items.append(item)

        logger.info("claim.done", claimed=len(claimed), items=len(items), claim_token=token)
        return items

    def _claim_rows(self, limit: int) -> tuple[list[Job], str]:
        if self.reaper is not None:
            self.reaper.reap()

        now = self._clock()
        now_s = format_ts(now)
        ids = self.jobs.select_claimable(limit, now_s)
        if not ids:
            return [], ""

        token = uuid.uuid4().hex
        won = self.jobs.claim(ids, token, add_seconds(now, self.lease_seconds), now_s)
        self.jobs.commit()
        if won < len(ids):
            logger.debug("claim.contended", selected=len(ids), won=won)
        if not won:
            return [], token
        return self.jobs.load_claimed(token), token

    def _prepare(self, job: Job, token: str) -> WorkItem | None:
        try:
            item = self.build_item(job, token)
        except JobDataError as exc:
            self.acker.fail_job(job.job_id, token, str(exc), retryable=False)
            return None
        except VectorSyncError as exc:
            self.acker.fail_job(job.job_id, token, str(exc), retryable=exc.retryable)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.exception("claim.resolve_failed", job_id=job.job_id)
            self.acker.fail_job(job.job_id, token, f"{type(exc).__name__}: {exc}", retryable=True)
            return None

        if item is None:
            self._supersede(job, token)
        return item

    def _supersede(self, job: Job, token: str) -> None:
        try:
            self.jobs.mark_superseded(job.job_id, format_ts(self._clock()), token=token)
            self.jobs.commit()
        except (DatabaseError, DatabaseConnectionError) as exc:
            self._rollback()
            logger.error("claim.supersede_failed", job_id=job.job_id, error=str(exc))
            return
        logger.info("claim.superseded", job_id=job.job_id, source_uuid=job.source_uuid)

    # -- resolution ----------------------------------------------------------

    def build_item(self, job: Job, token: str) -> WorkItem | None:
        """Resolve *job* into a work item.

        Returns None when an upsert is stale (the ledger has since seen a
        different version in the same collection).  Raises
        :class:`JobDataError` subclasses for jobs that can never succeed.
        """
        action = job.type
        if action is None:
            raise UnsupportedJobTypeError(job.job_type, job_id=job.job_id)

        uuid_hex = normalize_hex(job.source_uuid)
        collection_key = (job.collection_key or "").strip()
        if not uuid_hex or not collection_key:
            raise MissingJobFieldError(
                "job is missing source_uuid or collection_key", job_id=job.job_id
            )
        version_hex = normalize_hex(job.source_version) or None
        digest = content_hash(collection_key, uuid_hex, version_hex)

        if action is JobType.DELETE:
            return WorkItem(
                job_id=job.job_id,
                action=action,
                collection_key=collection_key,
                content_hash=digest,
                metadata=DomainMetadata(content_uuid=uuid_hex, content_version=version_hex),
                claim_token=token,
                attempts=job.attempts,
                content_type=DELETE_CONTENT_TYPE,
            )

        if version_hex and self._is_stale(uuid_hex, collection_key, version_hex):
            return None

        entry = self.resolver.resolve_entry(uuid_hex)
        if entry is None:
            raise UnresolvableEntryError("source entry not found", job_id=job.job_id, source_uuid=uuid_hex)
        if not entry.type.table:
            raise UnresolvableEntryError(
                f"type '{entry.type.alias}' has no payload table",
                job_id=job.job_id,
                source_uuid=uuid_hex,
            )
        payload = self.resolver.load_payload(entry.type.table, entry.id)
        if payload is None:
            raise PayloadNotFoundError(
                f"payload row {entry.id} not found in {entry.type.table}",
                job_id=job.job_id,
                source_uuid=uuid_hex,
                table=entry.type.table,
            )

        snapshot = PayloadSnapshot(entry=_entry_row(entry), type=entry.type, payload=payload)
        body = json.dumps(snapshot.to_dict(), default=str, ensure_ascii=False)
        return WorkItem(
            job_id=job.job_id,
            action=action,
            collection_key=collection_key,
            content_hash=digest,
            metadata=self._metadata(entry, uuid_hex, version_hex or normalize_hex(entry.version)),
            claim_token=token,
            attempts=job.attempts,
            payload=snapshot,
            content_type=UPSERT_CONTENT_TYPE,
            size=len(body.encode("utf-8")),
        )

    def _is_stale(self, uuid_hex: str, collection_key: str, version_hex: str) -> bool:
        record = self.seen.get(uuid_hex)
        if record is None:
            return False
        return (
            record.last_seen_collection_key == collection_key
            and record.last_seen_version != version_hex
        )

    def _metadata(self, entry: ResolvedEntry, uuid_hex: str, version_hex: str | None) -> DomainMetadata:
        metadata = DomainMetadata(
            content_uuid=uuid_hex,
            content_version=version_hex or None,
            type_alias=entry.type.alias or None,
            archive=1 if entry.archived else 0,
        )
        if self.access is not None:
            metadata.public = 1 if self.access.is_public(entry.id) else 0
        if self.annotations is not None:
            metadata.tags = normalize_tags(self.annotations.tags(entry.id))
            metadata.ref_uuids = normalize_ref_uuids(self.annotations.related_uuids(entry.id))
            metadata.name = normalize_name(self.annotations.display_name(entry.id))
        return metadata

    def _rollback(self) -> None:
        try:
            self.jobs.conn.rollback()
        except Exception:  # noqa: BLE001
            logger.debug("rollback.failed", exc_info=True)


def _entry_row(entry: ResolvedEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "uuid": entry.uuid,
        "version": entry.version,
        "type_id": entry.type.id,
        "archived": 1 if entry.archived else 0,
        "created_at": entry.created_at,
        "changed_at": entry.changed_at,
        **entry.extra,
    }


__all__ = ["Claimer"]
