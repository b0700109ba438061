"""
Queue tables shared by every scanner and worker.

Defines table names and DDL for the three tables the claim protocol runs
on.  All statements are idempotent (``IF NOT EXISTS``) so every run may call
:func:`create_tables` before doing anything else.

Tables:
    - **embedding_job:** One row per (uuid, version, collection, type) unit
      of work; the claim protocol's shared state.
    - **embedding_seen:** Seen ledger, one row per source uuid; the only
      record of an entity's collection once its source row is gone.
    - **embedding_checkpoint:** Named scan cursors plus last-run timestamps.

Indexes:
    ::

        embedding_job   ix_job_claim   (state, priority, lease_until, updated_at)
                        ix_job_token   (claim_token)
                        ix_job_source  (source_uuid, job_type)
                        ix_job_collection (collection_key)
        embedding_seen  ix_seen_missing (missing_since)
                        ix_seen_delete_job (delete_job_id)
                        ix_seen_collection (last_seen_collection_key)

Examples:
    >>> from vectorsync.core.schema import TABLES, create_tables
    >>> TABLES["jobs"]
    'embedding_job'
    >>> create_tables(conn)

Tags:
    schema, ddl, queue, vectorsync
"""

from __future__ import annotations

from vectorsync.core.dialect import Dialect, SQLiteDialect
from vectorsync.core.protocols import Connection

# =============================================================================
# TABLE NAMES
# =============================================================================

TABLES = {
    "jobs": "embedding_job",
    "seen": "embedding_seen",
    "checkpoints": "embedding_checkpoint",
}


# =============================================================================
# DDL STATEMENTS
# =============================================================================

# {auto_increment} is filled from the dialect.
DDL = {
    "jobs": """
        CREATE TABLE IF NOT EXISTS embedding_job (
            job_id {auto_increment},
            source_uuid TEXT NOT NULL,          -- upper-case hex
            source_version TEXT,                -- NULL only for legacy upserts
            collection_key TEXT NOT NULL,
            job_type TEXT NOT NULL,             -- upsert | delete
            state TEXT NOT NULL DEFAULT 'pending'
                CHECK (state IN ('pending', 'running', 'done', 'error', 'superseded')),
            priority INTEGER NOT NULL DEFAULT 1,
            attempts INTEGER NOT NULL DEFAULT 0,

            -- Claim
            lease_until TEXT,
            claim_token TEXT,
            claimed_at TEXT,

            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            error_message TEXT,

            UNIQUE (source_uuid, source_version, collection_key, job_type)
        )
    """,
    "seen": """
        CREATE TABLE IF NOT EXISTS embedding_seen (
            source_uuid TEXT PRIMARY KEY,
            last_seen_version TEXT NOT NULL,
            last_seen_changed TEXT NOT NULL,
            last_seen_at TEXT NOT NULL,
            last_seen_collection_key TEXT NOT NULL,
            missing_since TEXT,
            delete_job_id INTEGER,
            deleted_at TEXT
        )
    """,
    "checkpoints": """
        CREATE TABLE IF NOT EXISTS embedding_checkpoint (
            name TEXT PRIMARY KEY,
            last_changed TEXT NOT NULL DEFAULT '1970-01-01 00:00:00',
            last_run_at TEXT
        )
    """,
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS ix_job_claim ON embedding_job (state, priority, lease_until, updated_at)",
    "CREATE INDEX IF NOT EXISTS ix_job_token ON embedding_job (claim_token)",
    "CREATE INDEX IF NOT EXISTS ix_job_source ON embedding_job (source_uuid, job_type)",
    "CREATE INDEX IF NOT EXISTS ix_job_collection ON embedding_job (collection_key)",
    "CREATE INDEX IF NOT EXISTS ix_seen_missing ON embedding_seen (missing_since)",
    "CREATE INDEX IF NOT EXISTS ix_seen_delete_job ON embedding_seen (delete_job_id)",
    "CREATE INDEX IF NOT EXISTS ix_seen_collection ON embedding_seen (last_seen_collection_key)",
]


def create_tables(conn: Connection, dialect: Dialect | None = None) -> list[str]:
    """Create the queue tables and indexes (idempotent).

    Returns the list of table names ensured.
    """
    dialect = dialect or SQLiteDialect()
    for ddl in DDL.values():
        conn.execute(ddl.format(auto_increment=dialect.auto_increment()))
    for statement in INDEXES:
        conn.execute(statement)
    conn.commit()
    return list(TABLES.values())


__all__ = ["TABLES", "DDL", "INDEXES", "create_tables"]
