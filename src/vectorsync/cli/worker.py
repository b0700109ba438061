"""
CLI: ``vectorsync worker`` -- claim and execute one batch.
"""

from __future__ import annotations

import typer

from vectorsync.cli.utils import DatabaseOption, make_context, output_status

app = typer.Typer(no_args_is_help=True)


@app.command("run")
def run(
    executor: str = typer.Option(
        ..., "--executor", "-e", help="Executor as 'module:attr' (class, instance or function)"
    ),
    limit: int = typer.Option(0, "--limit", "-n", help="Jobs to claim (0: configured claim limit)"),
    database: str | None = DatabaseOption,
) -> None:
    """Claim up to LIMIT jobs, run them through EXECUTOR, ack or fail each."""
    from vectorsync.ops.runs import run_worker

    ctx = make_context(database)
    output_status(run_worker(ctx, executor, limit=limit))
