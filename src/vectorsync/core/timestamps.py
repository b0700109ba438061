"""
UTC timestamp helpers (stdlib-only).

Every timestamp vectorsync writes is UTC text in the fixed form
``YYYY-MM-DD HH:MM:SS``.  With one format everywhere, SQL string comparison
(``lease_until < ?``, ``changed > ?``) is chronological comparison, and the
cursor read back from a checkpoint can be fed straight into the next scan.

Components take a ``clock`` callable defaulting to :func:`utc_now` so tests
can move time forward without sleeping.

STDLIB ONLY - NO PYDANTIC.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

TS_FORMAT = "%Y-%m-%d %H:%M:%S"

EPOCH = "1970-01-01 00:00:00"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def format_ts(dt: datetime) -> str:
    """Render a datetime as stored text, converting aware values to UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.strftime(TS_FORMAT)


def parse_ts(value: str | None) -> datetime | None:
    """Parse stored text back into an aware UTC datetime."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def add_seconds(dt: datetime, seconds: int) -> str:
    """``format_ts(dt + seconds)``, used for lease deadlines."""
    return format_ts(dt + timedelta(seconds=seconds))


__all__ = [
    "TS_FORMAT",
    "EPOCH",
    "Clock",
    "utc_now",
    "format_ts",
    "parse_ts",
    "add_seconds",
]
