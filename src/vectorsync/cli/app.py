"""
Root Typer application for the vectorsync CLI.

Entry point ``vectorsync``.  Every sub-command opens the store named by
``--database`` (or ``VECTORSYNC_DATABASE_PATH``) and calls one operation.
"""

from __future__ import annotations

import typer
from typer import Typer

from vectorsync.core.logging import configure_logging
from vectorsync.core.settings import get_settings

app = Typer(
    name="vectorsync",
    help="vectorsync -- relational change capture into embedding jobs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from vectorsync import __version__

        try:
            v = pkg_version("vectorsync")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"vectorsync {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
    json_logs: bool | None = typer.Option(None, "--json-logs/--console-logs", help="Log format"),
) -> None:
    """vectorsync CLI -- scan sources, run workers, inspect the job queue."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=json_logs if json_logs is not None else settings.log_json,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from vectorsync.cli.db import app as db_app  # noqa: E402
from vectorsync.cli.enqueue import app as enqueue_app  # noqa: E402
from vectorsync.cli.jobs import app as jobs_app  # noqa: E402
from vectorsync.cli.worker import app as worker_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database schema.")
app.add_typer(enqueue_app, name="enqueue", help="Change and deletion scans.")
app.add_typer(worker_app, name="worker", help="Claim and execute jobs.")
app.add_typer(jobs_app, name="jobs", help="Inspect and repair the job queue.")
