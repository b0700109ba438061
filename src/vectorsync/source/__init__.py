"""Source-side adapters (system of record)."""

from .sql import SqlEntrySource, create_source_tables

__all__ = ["SqlEntrySource", "create_source_tables"]
