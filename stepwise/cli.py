"""Command line interface for inspecting and driving stepwise runs."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from stepwise import ExecutionManager, get_store
from stepwise.cli_utils.imports import load_object
from stepwise.config import load_config
from stepwise.errors import RunError, RunNotFoundError, StepwiseError, UnknownRunError
from stepwise.models import ExecutionRecord
from stepwise.utils.retry import resume_until_complete

app = typer.Typer(help="CLI for stepwise durable runs")

run_app = typer.Typer(help="Commands for managing runs")

app.add_typer(run_app, name="run")


@app.callback()
def main() -> None:
    """Stepwise CLI entry point."""
    try:
        config = load_config()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        typer.secho(f"Invalid configuration: {problems}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _manager(actions: str, base_path: Optional[Path]) -> ExecutionManager:
    try:
        registry = load_object(actions, base_path)
    except (ImportError, ValueError) as exc:
        typer.secho(f"Cannot load actions {actions}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return ExecutionManager(registry, get_store())


def _print_record(record: ExecutionRecord) -> None:
    typer.echo(f"Run {record.id}: {record.status}")
    typer.echo(f"Created: {record.timestamp.isoformat()}")
    if record.input:
        typer.echo(f"Input: {json.dumps(record.input)}")
    for index, (action, state) in enumerate(zip(record.actions, record.action_states)):
        line = f"- [{index}] {action}: {state.status.value}"
        if state.attempts:
            line += f" (attempts: {state.attempts})"
        if state.error:
            line += f" error: {state.error}"
        typer.echo(line)


@run_app.command("list")
def run_list() -> None:
    """
    List all runs with their current status.

    Example:
        stepwise run list
        # Output: 3f2a...    completed
        #         9b71...    failed
    """
    store = get_store()
    records = asyncio.run(store.list_states())
    if not records:
        typer.echo("No runs found")
        return
    for record in records:
        typer.echo(f"{record.id}\t{record.status}")


@run_app.command("show")
def run_show(run_id: str) -> None:
    """Show the input and per-step status of a run."""
    store = get_store()
    try:
        record = asyncio.run(store.restore_state(run_id))
    except RunNotFoundError:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    _print_record(record)


@run_app.command("execute")
def run_execute(
    actions: str = typer.Argument(..., help="Action registry as module:attribute"),
    input: Optional[str] = typer.Option(None, help="JSON object passed as run input"),
    action: Optional[List[str]] = typer.Option(
        None, "--action", "-a", help="Action identifier to run, repeatable"
    ),
    base_path: Optional[Path] = typer.Option(None, help="Directory to import from"),
) -> None:
    """
    Start a new run against the given action registry.

    Example:
        stepwise run execute my_actions:REGISTRY --input '{"a": 1}' -a echo -a echo
    """
    try:
        payload = json.loads(input) if input else {}
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid JSON input: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    if not isinstance(payload, dict):
        typer.secho("Input must be a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    manager = _manager(actions, base_path)
    try:
        run_id = asyncio.run(manager.execute_event(payload, action or None))
    except RunError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        typer.echo(f"Run ID: {exc.run_id}")
        raise typer.Exit(code=1)
    except StepwiseError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Run ID: {run_id}")
    typer.echo("Run completed")


@run_app.command("resume")
def run_resume(
    run_id: str,
    actions: str = typer.Argument(..., help="Action registry as module:attribute"),
    retries: int = typer.Option(1, min=1, help="Maximum number of resume attempts"),
    backoff: bool = typer.Option(False, help="Sleep with exponential backoff between attempts"),
    base_path: Optional[Path] = typer.Option(None, help="Directory to import from"),
) -> None:
    """
    Resume a run from its first step that has not succeeded.

    Example:
        stepwise run resume 3f2a... my_actions:REGISTRY --retries 5 --backoff
    """
    manager = _manager(actions, base_path)
    try:
        attempts = asyncio.run(
            resume_until_complete(manager, run_id, max_attempts=retries, backoff=backoff)
        )
    except UnknownRunError:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    except StepwiseError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Run {run_id} completed after {attempts} attempt(s)")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
