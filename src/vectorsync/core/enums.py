"""
Queue enums shared by scanners, claimers and the operator surfaces.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class JobType(str, Enum):
    """What the executor must do with an entity in a collection."""

    UPSERT = "upsert"
    DELETE = "delete"


class JobState(str, Enum):
    """
    Job lifecycle state.

    ::

        pending ──claim──▶ running ──ack──▶ done
           ▲                 │
           └──fail(retry)────┤──fail(final)──▶ error
           └──lease expired──┘
        pending / running ──stale──▶ superseded
    """

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    SUPERSEDED = "superseded"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({JobState.DONE, JobState.ERROR, JobState.SUPERSEDED})


__all__ = ["JobType", "JobState", "TERMINAL_STATES"]
