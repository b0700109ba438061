"""
Tests for Claimer.

Covers claim ordering, lease fields, resolution into work items, and the
routing of jobs that cannot become work items.
"""

import json

from tests._support.store import make_uuid
from vectorsync.core.enums import JobState, JobType
from vectorsync.core.hashing import content_hash
from vectorsync.core.models import DELETE_CONTENT_TYPE, UPSERT_CONTENT_TYPE
from vectorsync.core.timestamps import EPOCH
from vectorsync.queue.claimer import Claimer

T1 = "2026-02-01 10:00:00"
T2 = "2026-02-01 11:00:00"


def _seed(source_db, change_scanner, count=1, **kwargs):
    for n in range(1, count + 1):
        source_db.add_entry(make_uuid(n), f"A{n}", T1, **kwargs)
    change_scanner.scan(100, EPOCH)


class TestClaimBatch:
    def test_nothing_pending(self, claimer):
        assert claimer.claim(10) == []

    def test_claims_and_leases(self, claimer, source_db, change_scanner, jobs):
        _seed(source_db, change_scanner, 2)
        items = claimer.claim(10)
        assert len(items) == 2
        for item in items:
            job = jobs.get_by_id(item.job_id)
            assert job.state is JobState.RUNNING
            assert job.claim_token == item.claim_token
            assert job.lease_until == "2026-03-01 12:10:00"
            assert item.attempts == 1

    def test_one_token_per_batch(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 3)
        items = claimer.claim(10)
        assert len({i.claim_token for i in items}) == 1

    def test_priority_order(self, claimer, jobs, source_db, change_scanner):
        _seed(source_db, change_scanner, 3)
        urgent = jobs.find_id(make_uuid(3), "A3", "contact", JobType.UPSERT)
        jobs.execute("UPDATE embedding_job SET priority = 9 WHERE job_id = ?", (urgent,))
        items = claimer.claim(10)
        assert items[0].job_id == urgent
        assert [i.job_id for i in items[1:]] == sorted(i.job_id for i in items[1:])

    def test_limit_respected(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 4)
        assert len(claimer.claim(3)) == 3
        assert len(claimer.claim(3)) == 1

    def test_non_positive_limit_falls_back(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 7)
        assert len(claimer.claim(0)) == 5
        assert len(claimer.claim(-1)) == 2

    def test_claimed_jobs_not_reclaimed_while_leased(self, claimer, source_db, change_scanner, clock):
        _seed(source_db, change_scanner, 1)
        claimer.claim(10)
        clock.advance(minutes=9)
        assert claimer.claim(10) == []

    def test_expired_lease_is_reaped_and_reclaimed(self, claimer, source_db, change_scanner, clock):
        _seed(source_db, change_scanner, 1)
        first = claimer.claim(10)[0]
        clock.advance(minutes=11)
        second = claimer.claim(10)
        assert [i.job_id for i in second] == [first.job_id]
        assert second[0].attempts == 2
        assert second[0].claim_token != first.claim_token


class TestUpsertItem:
    def test_payload_snapshot(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 1, title="Hello")
        item = claimer.claim(1)[0]

        assert item.action is JobType.UPSERT
        assert item.content_type == UPSERT_CONTENT_TYPE
        assert item.collection_key == "contact"
        assert item.payload.payload["title"] == "Hello"
        assert item.payload.type.alias == "contact"
        assert item.payload.type.table == "payload_contact"
        assert item.payload.entry["uuid"] == make_uuid(1)
        body = json.dumps(item.payload.to_dict(), default=str, ensure_ascii=False)
        assert item.size == len(body.encode("utf-8"))

    def test_content_hash(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 1)
        item = claimer.claim(1)[0]
        assert item.content_hash == content_hash("contact", make_uuid(1), "A1")

    def test_metadata_defaults(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 1, archived=1)
        meta = claimer.claim(1)[0].metadata
        assert meta.content_uuid == make_uuid(1)
        assert meta.content_version == "A1"
        assert meta.type_alias == "contact"
        assert meta.archive == 1
        assert meta.public == 0
        assert meta.tags == []
        assert meta.name is None

    def test_metadata_annotations(self, claimer, source_db, change_scanner, conn):
        _seed(source_db, change_scanner, 2)
        entry = source_db.entry_id(make_uuid(1))
        peer = source_db.entry_id(make_uuid(2))
        conn.execute("INSERT INTO source_access (entry_id, user_id, mode) VALUES (?, 1, 'visitor')", (entry,))
        conn.execute("INSERT INTO source_tag (entry_id, tag) VALUES (?, ' VIP'), (?, 'vip'), (?, 'lead')",
                     (entry, entry, entry))
        conn.execute("INSERT INTO source_name (entry_id, lang_id, name) VALUES (?, 1, ' Ada ')", (entry,))
        conn.execute("INSERT INTO source_relation (entry_id, peer_id) VALUES (?, ?)", (entry, peer))
        conn.commit()

        items = {i.source_uuid: i for i in claimer.claim(10)}
        meta = items[make_uuid(1)].metadata
        assert meta.public == 1
        assert meta.tags == ["lead", "vip"]
        assert meta.name == "Ada"
        assert meta.ref_uuids == [make_uuid(2)]

    def test_without_access_and_annotations(self, jobs, seen, source, source_db, change_scanner, clock):
        _seed(source_db, change_scanner, 1)
        item = Claimer(jobs, seen, source, clock=clock).claim(1)[0]
        assert item.metadata.public is None
        assert "public" not in item.metadata.to_dict()


class TestDeleteItem:
    def test_delete_item_has_no_payload(self, claimer, jobs, clock):
        jobs.enqueue(make_uuid(1), "A1", "contact", JobType.DELETE, "2026-03-01 11:00:00")
        jobs.commit()
        item = claimer.claim(1)[0]
        assert item.is_delete
        assert item.payload is None
        assert item.content_type == DELETE_CONTENT_TYPE
        assert item.metadata.content_uuid == make_uuid(1)
        assert item.content_hash == content_hash("contact", make_uuid(1), "A1")


class TestUnbuildableJobs:
    def test_stale_upsert_is_superseded(self, claimer, jobs, seen, source_db):
        source_db.add_entry(make_uuid(1), "A2", T2)
        jobs.enqueue(make_uuid(1), "A1", "contact", JobType.UPSERT, "2026-03-01 11:00:00")
        seen.upsert(make_uuid(1), "A2", T2, "contact", "2026-03-01 11:00:00")
        jobs.commit()

        assert claimer.claim(10) == []
        job = jobs.get_by_id(jobs.find_id(make_uuid(1), "A1", "contact", JobType.UPSERT))
        assert job.state is JobState.SUPERSEDED

    def test_ledger_in_other_collection_is_not_stale(self, claimer, jobs, seen, source_db):
        source_db.add_entry(make_uuid(1), "A1", T1)
        jobs.enqueue(make_uuid(1), "A1", "archive", JobType.UPSERT, "2026-03-01 11:00:00")
        seen.upsert(make_uuid(1), "A2", T2, "contact", "2026-03-01 11:00:00")
        jobs.commit()
        assert len(claimer.claim(10)) == 1

    def test_missing_entry_goes_to_error(self, claimer, jobs, source_db, change_scanner):
        _seed(source_db, change_scanner, 1)
        source_db.delete_entry(make_uuid(1))
        assert claimer.claim(10) == []
        job = jobs.list_jobs()[0][0]
        assert job.state is JobState.ERROR
        assert "not found" in job.error_message

    def test_missing_payload_goes_to_error(self, claimer, jobs, source_db, change_scanner):
        _seed(source_db, change_scanner, 1, with_payload=False)
        assert claimer.claim(10) == []
        job = jobs.list_jobs()[0][0]
        assert job.state is JobState.ERROR
        assert "payload_contact" in job.error_message

    def test_type_without_table_goes_to_error(self, claimer, jobs, source_db, change_scanner):
        source_db.add_type("orphan", payload_table="")
        source_db.add_entry(make_uuid(1), "A1", T1, alias="orphan", with_payload=False)
        change_scanner.scan(100, EPOCH)
        assert claimer.claim(10) == []
        job = jobs.list_jobs()[0][0]
        assert job.state is JobState.ERROR
        assert "orphan" in job.error_message

    def test_unknown_job_type_goes_to_error(self, claimer, jobs):
        jobs.execute(
            "INSERT INTO embedding_job (source_uuid, source_version, collection_key, job_type, "
            "state, created_at, updated_at) VALUES (?, 'A1', 'contact', 'reindex', 'pending', ?, ?)",
            (make_uuid(1), "2026-03-01 11:00:00", "2026-03-01 11:00:00"),
        )
        jobs.commit()
        assert claimer.claim(10) == []
        job = jobs.list_jobs()[0][0]
        assert job.state is JobState.ERROR
        assert "reindex" in job.error_message

    def test_good_jobs_still_returned(self, claimer, source_db, change_scanner):
        _seed(source_db, change_scanner, 2)
        source_db.delete_entry(make_uuid(1))
        items = claimer.claim(10)
        assert [i.source_uuid for i in items] == [make_uuid(2)]

    def test_resolver_crash_is_retryable(self, jobs, seen, acker, source_db, change_scanner, clock):
        class Exploding:
            def resolve_entry(self, uuid_hex):
                raise RuntimeError("resolver down")

            def load_payload(self, table, row_id):
                return None

        _seed(source_db, change_scanner, 1)
        assert Claimer(jobs, seen, Exploding(), acker=acker, clock=clock).claim(1) == []
        job = jobs.list_jobs()[0][0]
        assert job.state is JobState.PENDING
        assert "RuntimeError: resolver down" in job.error_message
