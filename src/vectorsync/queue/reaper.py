"""Lease expiry.

A worker that dies between claim and ack leaves its jobs ``running`` with a
lease in the past.  Nothing else ever selects ``running`` rows, so without
this pass those jobs would never terminate.  The reaper hands them back to
``pending``, or to ``error`` once they have used their last attempt (the
attempt was already counted at claim time).
"""

from __future__ import annotations

from dataclasses import dataclass

from vectorsync.core.logging import get_logger
from vectorsync.core.repositories import JobRepository
from vectorsync.core.timestamps import Clock, format_ts, utc_now

logger = get_logger(__name__)

LEASE_EXPIRED_MESSAGE = "lease expired before ack"


@dataclass(frozen=True, slots=True)
class ReapResult:
    requeued: int = 0
    errored: int = 0

    @property
    def total(self) -> int:
        return self.requeued + self.errored


class LeaseReaper:
    """Releases ``running`` jobs whose lease lapsed."""

    def __init__(
        self,
        jobs: JobRepository,
        *,
        max_attempts: int = 5,
        clock: Clock = utc_now,
    ) -> None:
        self.jobs = jobs
        self.max_attempts = max_attempts
        self._clock = clock

    def reap(self) -> ReapResult:
        requeued, errored = self.jobs.reap_expired(
            format_ts(self._clock()), self.max_attempts, LEASE_EXPIRED_MESSAGE
        )
        self.jobs.commit()
        result = ReapResult(requeued=requeued, errored=errored)
        if result.total:
            logger.warning("leases.reaped", requeued=requeued, errored=errored)
        return result


__all__ = ["LEASE_EXPIRED_MESSAGE", "LeaseReaper", "ReapResult"]
