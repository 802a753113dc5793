"""Command line interface for inspecting persisted workflow runs."""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Optional

import typer

from durastep.config import load_config
from durastep.contracts import RunStatus
from durastep.persistence import get_store

app = typer.Typer(help="CLI for durastep workflow runs")

runs_app = typer.Typer(help="Commands for inspecting workflow runs")
store_app = typer.Typer(help="Commands for managing the snapshot store")

app.add_typer(runs_app, name="runs")
app.add_typer(store_app, name="store")


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@app.callback()
def main(
    log_level: Optional[LogLevel] = typer.Option(
        None,
        case_sensitive=False,
        help="Logging level (defaults to the configured level)",
    ),
) -> None:
    """Durastep CLI entry point."""
    level = log_level.value if log_level is not None else load_config().log_level
    logging.basicConfig(level=level)


@runs_app.command("list")
def runs_list(
    workflow_id: Optional[str] = typer.Option(None, help="Only runs of this workflow"),
    status: Optional[RunStatus] = typer.Option(None, help="Only runs in this status"),
) -> None:
    """
    List runs, most recently updated first.

    Example:
        durastep runs list --workflow-id greeting-workflow --status failed
        # Output: 3f1c...    greeting-workflow    failed    2026-01-01T10:00:00+00:00
    """
    store = get_store()
    if status is None:
        runs = asyncio.run(store.list_runs(workflow_id))
    else:
        runs = asyncio.run(store.get_runs_by_status(status, workflow_id))
    if not runs:
        typer.echo("No runs found")
        return
    for run in runs:
        typer.echo(
            f"{run.run_id}\t{run.workflow_id}\t{run.status.value}\t{run.timestamp.isoformat()}"
        )


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """
    Show the latest snapshot of a run.

    Displays status, execution path, every recorded step result and the final
    result or error.
    """
    store = get_store()
    snapshot = asyncio.run(store.load_snapshot(run_id))
    if snapshot is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {snapshot.run_id} ({snapshot.workflow_id}): {snapshot.status.value}")
    typer.echo(f"Execution path: {snapshot.execution_path}")
    typer.echo(f"Input: {json.dumps(snapshot.input_data)}")
    if snapshot.state is not None:
        typer.echo(f"State: {json.dumps(snapshot.state)}")
    for step_id, result in snapshot.step_results.items():
        line = f"- {step_id}: {result.status} ({result.timestamp.isoformat()})"
        if result.status == "failed":
            line += f" error={result.error}"
        typer.echo(line)
    if snapshot.result is not None:
        typer.echo(f"Result: {json.dumps(snapshot.result)}")
    if snapshot.error:
        typer.secho(f"Error: {snapshot.error}", fg=typer.colors.RED)


@runs_app.command("delete")
def runs_delete(
    run_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a run's snapshot from the store."""
    if not yes:
        typer.confirm(f"Delete run {run_id}?", abort=True)

    async def _delete() -> bool:
        store = get_store()
        if await store.load_snapshot(run_id) is None:
            return False
        await store.delete_run(run_id)
        return True

    if not asyncio.run(_delete()):
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Deleted run {run_id}")


@store_app.command("init")
def store_init() -> None:
    """Create the snapshot table and indexes if they do not exist."""
    store = get_store()
    asyncio.run(store.init())
    typer.echo("Snapshot store initialized")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
