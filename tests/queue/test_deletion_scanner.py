"""Tests for DeletionScanner: one delete job per disappearance."""

from tests._support.store import make_uuid
from vectorsync.core.enums import JobState, JobType
from vectorsync.core.timestamps import EPOCH

T1 = "2026-02-01 10:00:00"
T2 = "2026-02-01 11:00:00"

DASHED = "0f8fad5b-d9cb-469f-a165-70867728950e"
CANON = "0F8FAD5BD9CB469FA16570867728950E"


class TestDeletionScan:
    def test_nothing_vanished(self, change_scanner, deletion_scanner, source_db):
        source_db.add_entry(make_uuid(1), "A1", T1)
        change_scanner.scan(100, EPOCH)
        assert deletion_scanner.scan(100) == 0

    def test_vanished_entity_gets_one_delete(self, change_scanner, deletion_scanner, source_db, jobs, seen):
        source_db.add_entry(make_uuid(1), "A1", T1)
        change_scanner.scan(100, EPOCH)
        source_db.delete_entry(make_uuid(1))

        assert deletion_scanner.scan(100) == 1
        job_id = jobs.find_id(make_uuid(1), "A1", "contact", JobType.DELETE)
        assert job_id is not None
        assert jobs.get_by_id(job_id).state is JobState.PENDING

        rec = seen.get(make_uuid(1))
        assert rec.missing_since is not None
        assert rec.delete_job_id == job_id

    def test_second_scan_adds_nothing(self, change_scanner, deletion_scanner, source_db, jobs):
        source_db.add_entry(make_uuid(1), "A1", T1)
        change_scanner.scan(100, EPOCH)
        source_db.delete_entry(make_uuid(1))

        deletion_scanner.scan(100)
        assert deletion_scanner.scan(100) == 0
        assert len(jobs.list_jobs(job_type="delete")[0]) == 1

    def test_uses_last_seen_collection(self, jobs, seen, deletion_scanner):
        seen.upsert(make_uuid(5), "V9", T1, "archive", "2026-03-01 00:00:00")
        deletion_scanner.scan(10)
        assert jobs.find_id(make_uuid(5), "V9", "archive", JobType.DELETE) is not None

    def test_limit(self, seen, deletion_scanner):
        for n in range(1, 6):
            seen.upsert(make_uuid(n), "V1", T1, "default", "2026-03-01 00:00:00")
        assert deletion_scanner.scan(2) == 2
        assert deletion_scanner.scan(10) == 3

    def test_same_version_vanishing_twice_counts_once(
        self, change_scanner, deletion_scanner, source_db, jobs, seen
    ):
        source_db.add_entry(make_uuid(1), "A1", T1)
        change_scanner.scan(100, EPOCH)
        source_db.delete_entry(make_uuid(1))
        assert deletion_scanner.scan(100) == 1
        first_delete = seen.get(make_uuid(1)).delete_job_id

        source_db.add_entry(make_uuid(1), "A1", T2)
        change_scanner.scan(100, T1)
        assert seen.get(make_uuid(1)).missing_since is None
        source_db.delete_entry(make_uuid(1))

        assert deletion_scanner.scan(100) == 0
        assert jobs.list_jobs(job_type="delete")[1] == 1
        rec = seen.get(make_uuid(1))
        assert rec.missing_since is not None
        assert rec.delete_job_id == first_delete

    def test_new_version_vanishing_gets_new_delete(self, change_scanner, deletion_scanner, source_db, jobs):
        source_db.add_entry(make_uuid(1), "A1", T1)
        change_scanner.scan(100, EPOCH)
        source_db.delete_entry(make_uuid(1))
        deletion_scanner.scan(100)

        source_db.add_entry(make_uuid(1), "A2", T2)
        change_scanner.scan(100, T1)
        source_db.delete_entry(make_uuid(1))

        assert deletion_scanner.scan(100) == 1
        assert jobs.find_id(make_uuid(1), "A2", "contact", JobType.DELETE) is not None


class TestStoredUuidSpelling:
    def test_dashed_lower_case_entry_stays_live(self, change_scanner, deletion_scanner, source_db, jobs, seen):
        source_db.add_entry(DASHED, "a1", T1)
        change_scanner.scan(100, EPOCH)
        assert seen.get(CANON) is not None

        assert deletion_scanner.scan(100) == 0
        assert jobs.list_jobs(job_type="delete")[1] == 0

    def test_dashed_entry_deleted_later(self, change_scanner, deletion_scanner, source_db, jobs):
        source_db.add_entry(DASHED, "a1", T1)
        change_scanner.scan(100, EPOCH)
        source_db.delete_entry(DASHED)

        assert deletion_scanner.scan(100) == 1
        assert jobs.find_id(CANON, "A1", "contact", JobType.DELETE) is not None

    def test_dashed_entry_claims_as_upsert(self, change_scanner, claimer, source_db, jobs):
        source_db.add_entry(DASHED, "a1", T1)
        change_scanner.scan(100, EPOCH)

        items = claimer.claim(10)
        assert len(items) == 1
        assert items[0].action is JobType.UPSERT
        assert items[0].source_uuid == CANON
        assert jobs.get_by_id(items[0].job_id).state is JobState.RUNNING

    def test_unsupported_spelling_skipped(self, change_scanner, deletion_scanner, source_db, seen):
        source_db.add_entry("urn:uuid:" + DASHED, "A1", T1)
        result = change_scanner.scan(100, EPOCH)
        assert result.processed == 0
        assert result.new_cursor == T1
        assert seen.get(CANON) is None
        assert deletion_scanner.scan(100) == 0
