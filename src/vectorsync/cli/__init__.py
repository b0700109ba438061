"""
CLI layer for vectorsync.

A Typer application whose sub-commands delegate to the operations layer
(``vectorsync.ops``).  This package handles only terminal transport:
argument parsing, coloured output, and table formatting.

Entry point::

    vectorsync --help
"""

from vectorsync.cli.app import app

__all__ = ["app"]
