"""
CLI utility helpers: output formatting and connection management.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from vectorsync.core.connection import connect_sqlite
from vectorsync.core.errors import DatabaseConnectionError
from vectorsync.core.logging import get_logger
from vectorsync.core.settings import get_settings
from vectorsync.ops.context import OperationContext
from vectorsync.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)

DatabaseOption = typer.Option(None, "--database", "-d", help="SQLite database path")
JsonOption = typer.Option(False, "--json", help="JSON output")


# ── Connection helper ────────────────────────────────────────────────────


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
) -> OperationContext:
    """Build an ``OperationContext`` for a CLI command.

    An unreachable store yields a context with ``conn=None``; operations
    report it as ``Store not connected``.
    """
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database_path": database})
    try:
        conn = connect_sqlite(settings.database_path)
    except DatabaseConnectionError as exc:
        logger.error("cli.store_unavailable", database=str(settings.database_path), error=str(exc))
        conn = None
    return OperationContext(conn=conn, settings=settings, caller="cli", dry_run=dry_run)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": obj}


def _fail(result: OperationResult) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    raise typer.Exit(code=1)


def output_status(result: OperationResult[str]) -> None:
    """Print a run's status line."""
    if not result.success:
        _fail(result)
    console.print(result.data, markup=False, highlight=False)


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    if not result.success:
        _fail(result)

    data = result.data

    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")


def output_paged(
    result: PagedResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render a ``PagedResult`` with pagination info."""
    if not result.success:
        _fail(result)

    items = result.data or []

    if as_json:
        payload = {
            "items": [_to_dict(d) for d in items],
            "total": result.total,
            "limit": result.limit,
            "offset": result.offset,
            "has_more": result.has_more,
        }
        console.print_json(json.dumps(payload, default=str))
        return

    if not items:
        console.print("[dim]No items.[/dim]")
        return

    _print_table(items, title=title)
    console.print(f"\n[dim]Showing {len(items)} of {result.total} (offset {result.offset})[/dim]")


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        table.add_row(*("" if v is None else str(v) for v in _to_dict(item).values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        if isinstance(v, dict):
            console.print(f"  [cyan]{k}[/cyan]:")
            for sk, sv in v.items():
                console.print(f"    [cyan]{sk}[/cyan]: {sv}", highlight=False)
        else:
            console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)
