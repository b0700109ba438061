"""
CLI: ``vectorsync db`` -- schema management.
"""

from __future__ import annotations

import typer

from vectorsync.cli.utils import DatabaseOption, JsonOption, make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = DatabaseOption,
    with_source: bool = typer.Option(
        False, "--with-source", help="Also create the default source tables"
    ),
    json_out: bool = JsonOption,
) -> None:
    """Create the queue tables (idempotent)."""
    from vectorsync.ops.runs import init_db

    ctx = make_context(database)
    result = init_db(ctx, with_source=with_source)
    output_result(result, as_json=json_out, title="Tables")
