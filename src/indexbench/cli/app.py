#!/usr/bin/env python3
"""
indexbench CLI - Typer-based command-line interface.

Provides commands for:
- Running index comparison scenarios
- Collection statistics
- Index inspection and reset
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import typer
from bson import json_util
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config.settings import Settings, get_settings
from ..engine.orchestrator import ScenarioOrchestrator, create_orchestrator
from ..errors import BenchmarkError
from ..models import ScenarioResult
from ..storage.gateway import Endpoint

# Initialize Typer app
app = typer.Typer(
    name="indexbench",
    help="indexbench - MongoDB index and query-plan benchmarks",
    add_completion=False,
)

# Rich console
console = Console()


def configure_logging(level: str) -> None:
    """Route the indexbench loggers through rich."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    root = logging.getLogger("indexbench")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False


def _parse_json(option: str, value: str | None) -> Any:
    if value is None:
        return None
    try:
        return json_util.loads(value)
    except ValueError as e:
        raise typer.BadParameter(f"{option} is not valid JSON: {e}") from e


def _endpoint(settings: Settings, uri: str | None, database: str | None) -> Endpoint:
    default = settings.endpoint()
    return Endpoint(uri=uri or default.uri, database=database or default.database)


def _build_orchestrator() -> ScenarioOrchestrator:
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_orchestrator(settings)


def _run_or_exit(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except BenchmarkError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


def render_result(result: ScenarioResult) -> None:
    """Print the echoed query and a per-leg comparison table."""
    echo = "\n\n".join(
        f"[cyan]{name}:[/cyan]\n{text}" for name, text in result.mql.items() if text is not None
    )
    console.print(Panel(echo, title=f"[bold]{result.scenario}[/bold] on {result.collection}", style="blue"))

    table = Table(title="Trial results", show_header=True)
    table.add_column("Leg", style="cyan", no_wrap=True)
    table.add_column("Avg (ms)", justify="right", style="green")
    table.add_column("Results", justify="right")
    table.add_column("Docs examined", justify="right")
    table.add_column("Keys examined", justify="right")
    table.add_column("Stage", style="yellow")
    table.add_column("Index")
    table.add_column("Direction")

    for name, leg in result.legs.items():
        diag = leg.diagnostics
        table.add_row(
            name,
            str(leg.execution_time_ms),
            str(leg.result_count),
            f"{diag.docs_examined:,}",
            f"{diag.keys_examined:,}",
            diag.stage,
            diag.index_name or "-",
            diag.direction or "-",
        )

    console.print(table)


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        from .. import __version__

        console.print(f"indexbench version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
):
    """
    indexbench CLI - Compare query latency and plans across index configurations.

    Use 'indexbench COMMAND --help' for command-specific help.
    """
    pass


@app.command()
def run(
    scenario: str = typer.Argument(..., help="scenario1 .. scenario5"),
    filter: str = typer.Option("{}", "--filter", "-f", help="Query filter as JSON"),
    sort: str | None = typer.Option(None, "--sort", "-s", help="Sort order as JSON (scenario4, scenario5)"),
    index: str | None = typer.Option(None, "--index", "-i", help="Index key pattern as JSON (scenario1)"),
    index1: str | None = typer.Option(None, "--index1", help="First index key pattern as JSON"),
    index2: str | None = typer.Option(None, "--index2", help="Second index key pattern as JSON"),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Result cap"),
    size: str | None = typer.Option(None, "--size", help="Collection size tag ('1m' or '10m')"),
    uri: str | None = typer.Option(None, "--uri", help="Override the MongoDB URI"),
    database: str | None = typer.Option(None, "--database", "-d", help="Override the database name"),
):
    """
    Run one comparison scenario and print its legs side by side.
    """
    payload: dict[str, Any] = {"filter": _parse_json("--filter", filter), "limit": limit, "data_size": size}
    for name, value in (("sort", sort), ("index", index), ("index1", index1), ("index2", index2)):
        parsed = _parse_json(f"--{name}", value)
        if parsed is not None:
            payload[name] = parsed

    async def _run():
        orchestrator = _build_orchestrator()
        endpoint = _endpoint(orchestrator.settings, uri, database)
        try:
            with console.status(f"[bold green]Running {scenario}...[/bold green]"):
                return await orchestrator.run(scenario, payload, endpoint)
        finally:
            await orchestrator.gateway.close()

    response = asyncio.run(_run())
    if not response.success:
        console.print(f"[red]✗ {scenario} failed: {response.error}[/red]")
        raise typer.Exit(1)

    render_result(response.result)


@app.command()
def stats(
    uri: str | None = typer.Option(None, "--uri", help="Override the MongoDB URI"),
    database: str | None = typer.Option(None, "--database", "-d", help="Override the database name"),
):
    """
    Show document counts of the benchmark collections.
    """

    async def _stats():
        orchestrator = _build_orchestrator()
        try:
            return await orchestrator.collection_statistics(_endpoint(orchestrator.settings, uri, database))
        finally:
            await orchestrator.gateway.close()

    statistics = _run_or_exit(_stats())

    table = Table(title="Benchmark collections", show_header=True)
    table.add_column("Collection", style="cyan", no_wrap=True)
    table.add_column("Documents", justify="right", style="green")
    for name, count in statistics.collections.items():
        table.add_row(name, f"{count:,}")
    table.add_row("[bold]total[/bold]", f"[bold]{statistics.document_count:,}[/bold]")
    console.print(table)
    console.print(f"[dim]All collections: {', '.join(statistics.all_collections) or '-'}[/dim]")


# Index management subcommand group
index_app = typer.Typer(help="Inspect or reset secondary indexes")
app.add_typer(index_app, name="indexes")


@index_app.command("list")
def index_list(
    size: str | None = typer.Option(None, "--size", help="Collection size tag ('1m' or '10m')"),
    uri: str | None = typer.Option(None, "--uri", help="Override the MongoDB URI"),
    database: str | None = typer.Option(None, "--database", "-d", help="Override the database name"),
):
    """
    List secondary indexes on a benchmark collection.
    """

    async def _list():
        orchestrator = _build_orchestrator()
        name = orchestrator.settings.collection_for(size)
        try:
            db = await orchestrator.gateway.acquire(_endpoint(orchestrator.settings, uri, database))
            return name, await orchestrator.indexes.list_secondary_indexes(db[name])
        finally:
            await orchestrator.gateway.close()

    name, indexes = _run_or_exit(_list())

    table = Table(title=f"Secondary indexes on {name}", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Keys", style="green")
    for idx in indexes:
        table.add_row(idx.get("name", "N/A"), json_util.dumps(idx.get("key", {})))
    console.print(table)


@index_app.command("clear")
def index_clear(
    size: str | None = typer.Option(None, "--size", help="Collection size tag ('1m' or '10m')"),
    uri: str | None = typer.Option(None, "--uri", help="Override the MongoDB URI"),
    database: str | None = typer.Option(None, "--database", "-d", help="Override the database name"),
):
    """
    Drop every secondary index on a benchmark collection.
    """

    async def _clear():
        orchestrator = _build_orchestrator()
        name = orchestrator.settings.collection_for(size)
        endpoint = _endpoint(orchestrator.settings, uri, database)
        try:
            async with orchestrator.gateway.lease(endpoint) as db:
                async with orchestrator.locks.hold(f"{endpoint.database}.{name}"):
                    await orchestrator.indexes.clear_indexes(db[name])
            return name
        finally:
            await orchestrator.gateway.close()

    name = _run_or_exit(_clear())
    console.print(f"[green]✓ Cleared secondary indexes on {name}[/green]")


def run_cli():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    run_cli()
