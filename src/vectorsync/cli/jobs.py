"""
CLI: ``vectorsync jobs`` -- inspect and repair the job queue.
"""

from __future__ import annotations

import typer

from vectorsync.cli.utils import (
    DatabaseOption,
    JsonOption,
    err_console,
    make_context,
    output_paged,
    output_result,
)

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_cmd(
    state: str | None = typer.Option(None, "--state", "-s", help="pending|running|done|error|superseded"),
    job_type: str | None = typer.Option(None, "--type", "-t", help="upsert|delete"),
    collection: str | None = typer.Option(None, "--collection", "-c"),
    uuid: str | None = typer.Option(None, "--uuid", help="Source uuid (any spelling)"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """List jobs, newest first."""
    from vectorsync.ops.jobs import list_jobs

    ctx = make_context(database)
    result = list_jobs(
        ctx,
        state=state,
        job_type=job_type,
        collection_key=collection,
        source_uuid=uuid,
        limit=limit,
        offset=offset,
    )
    output_paged(result, as_json=json_out, title="Jobs")


@app.command("show")
def show(
    job_id: int = typer.Argument(..., help="Job id"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """Show one job and the seen ledger row of its entity."""
    from vectorsync.ops.jobs import get_job

    ctx = make_context(database)
    output_result(get_job(ctx, job_id), as_json=json_out, title=f"Job {job_id}")


@app.command("stats")
def stats(
    collection: str | None = typer.Option(None, "--collection", "-c"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """Job counts per state and lag indicators."""
    from vectorsync.ops.jobs import queue_stats

    ctx = make_context(database)
    output_result(queue_stats(ctx, collection_key=collection), as_json=json_out, title="Queue")


@app.command("requeue")
def requeue(
    job_ids: list[int] | None = typer.Argument(None, help="Job ids (omit with --all)"),
    all_errors: bool = typer.Option(False, "--all", help="Requeue every job in state 'error'"),
    collection: str | None = typer.Option(None, "--collection", "-c"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Count without changing anything"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """Move failed jobs back to pending with a fresh attempt budget."""
    from vectorsync.ops.jobs import requeue_jobs

    if not job_ids and not all_errors:
        err_console.print("[bold red]Error[/bold red]: pass job ids or --all")
        raise typer.Exit(code=2)

    ctx = make_context(database, dry_run=dry_run)
    result = requeue_jobs(ctx, job_ids=job_ids or None, collection_key=collection)
    output_result(result, as_json=json_out, title="Would requeue" if dry_run else "Requeued")


@app.command("reap")
def reap(
    dry_run: bool = typer.Option(False, "--dry-run", help="Count without changing anything"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """Release running jobs whose lease expired."""
    from vectorsync.ops.jobs import reap_leases

    ctx = make_context(database, dry_run=dry_run)
    output_result(reap_leases(ctx), as_json=json_out, title="Expired leases" if dry_run else "Reaped")
