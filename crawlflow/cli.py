"""Command line interface for running and inspecting crawlflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from crawlflow import WorkflowRunner, WorkflowValidator, get_driver, get_event_sink, get_repository
from crawlflow.config import load_config

app = typer.Typer(help="CLI for crawlflow browser workflows")

runs_app = typer.Typer(help="Commands for inspecting run history")
app.add_typer(runs_app, name="runs")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    """Crawlflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_workflow(path: Path) -> Dict[str, Any]:
    if not path.exists():
        typer.secho(f"Workflow file not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    # YAML is a superset of JSON, so both formats load here
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        typer.secho("Workflow file must contain an object", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return data


def _parse_vars(pairs: List[str]) -> Dict[str, Any]:
    variables: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--var")
        variables[key] = value
    return variables


@app.command("validate")
def validate(path: Path) -> None:
    """
    Check a workflow file without running it.

    Reports every structural problem found (unknown step types, invalid step
    configuration, dangling ``next``/``exit``/branch targets).

    Example:
        crawlflow validate examples/login.yaml
    """
    workflow = _load_workflow(path)
    errors = WorkflowValidator().check(workflow)
    if errors:
        for error in errors:
            typer.secho(f"- {error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"{path}: ok")


@app.command("run")
def run(
    path: Path,
    run_id: Optional[str] = typer.Option(None, "--run-id", help="Run identifier (default: random)"),
    driver: Optional[str] = typer.Option(None, "--driver", help="Automation driver backend"),
    events: Optional[str] = typer.Option(None, "--events", help="Event sink backend"),
    var: List[str] = typer.Option([], "--var", help="Initial variable as KEY=VALUE"),
) -> None:
    """
    Execute a workflow once in the foreground.

    The run is validated first, then executed with the configured driver and
    event sink. Exits with code 1 when the run fails.

    Example:
        crawlflow run examples/login.yaml --events log
        crawlflow run flow.json --run-id r1 --var user=alice
    """
    workflow = _load_workflow(path)
    errors = WorkflowValidator().check(workflow)
    if errors:
        for error in errors:
            typer.secho(f"- {error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config()
    run_id = run_id or str(uuid.uuid4())
    repository = get_repository()
    sink = get_event_sink(events, config=config)
    runner = WorkflowRunner(
        workflow,
        run_id=run_id,
        sink=sink,
        driver=get_driver(driver, config=config),
        repository=repository,
        config=config.runner,
        variables=_parse_vars(var),
    )

    async def _run():
        try:
            await repository.create_run(run_id, workflow)
            return await runner.run()
        finally:
            await sink.disconnect()

    typer.echo(f"Starting run: {run_id}")
    outcome = asyncio.run(_run())
    if outcome.ok:
        typer.secho(f"Run {run_id}: succeeded", fg=typer.colors.GREEN)
        return
    typer.secho(f"Run {run_id}: failed ({outcome.error})", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
) -> None:
    """Start the HTTP runner API and event relay."""
    import uvicorn

    from crawlflow.server import create_app

    uvicorn.run(create_app(), host=host, port=port)


@runs_app.command("list")
def runs_list() -> None:
    """
    List recorded runs with their status.

    Example:
        crawlflow runs list
        # Output: r1    succeeded
        #         r2    failed
    """
    repo = get_repository()
    runs = asyncio.run(repo.list_runs())
    if not runs:
        typer.echo("No runs found")
        return
    for item in runs:
        typer.echo(f"{item.run_id}\t{item.status}")


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show the status and step history of a single run."""
    repo = get_repository()
    item = asyncio.run(repo.get_run(run_id))
    if item is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {item.run_id}: {item.status}")
    if item.error:
        typer.echo(f"Error: {item.error}")
    if item.workflow.get("name"):
        typer.echo(f"Workflow: {item.workflow['name']}")
    for step in item.steps:
        label = step.step_id or f"#{step.index}"
        state = "running" if step.ok is None else ("ok" if step.ok else "failed")
        typer.echo(
            f"- [{step.index}] {label} ({step.step_type}): {state}"
            + (f" - {step.error}" if step.error else "")
        )


@runs_app.command("export")
def runs_export(run_id: str) -> None:
    """Print a recorded run as JSON."""
    repo = get_repository()
    item = asyncio.run(repo.get_run(run_id))
    if item is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(item.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
