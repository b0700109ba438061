"""
CLI: ``vectorsync enqueue`` -- scanner runs.
"""

from __future__ import annotations

import typer

from vectorsync.cli.utils import DatabaseOption, make_context, output_status

app = typer.Typer(no_args_is_help=True)


@app.command("run")
def run(
    database: str | None = DatabaseOption,
    force: bool = typer.Option(False, "--force", "-f", help="Ignore the min-interval throttle"),
) -> None:
    """Scan for changed and deleted entries and enqueue jobs."""
    from vectorsync.ops.runs import run_enqueue

    ctx = make_context(database)
    output_status(run_enqueue(ctx, force=force))
