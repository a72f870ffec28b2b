"""CLI entry point for topicwalk."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .errors import ConfigError, ExplorationError
from .models import ExplorationRequest, ExplorationResult, PathEntry, TextBlock
from .progress import Milestone, report_milestone

app = typer.Typer(
    name="topicwalk",
    help="Explore any topic as a navigable tree of LLM-generated summaries.",
    add_completion=False,
)

console = Console()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_config_or_exit(env_file: Optional[Path]):
    from .config import load_config

    try:
        return load_config(dotenv_path=env_file)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _parse_path_entry(raw: str) -> PathEntry:
    """``"Title: description"`` -> PathEntry (description optional)."""
    title, _, description = raw.partition(":")
    return PathEntry(title=title.strip(), description=description.strip())


class ConsoleReporter:
    """Progress reporter that updates a Rich status spinner."""

    def __init__(self, status) -> None:
        self.status = status

    def report(self, message: str, progress: int) -> None:
        self.status.update(f"[cyan]{progress:3d}%[/cyan] {escape(message)}")


def _render_block(title: str, block: TextBlock) -> None:
    if not block.text and not block.lists:
        return
    lines = [escape(block.text)] if block.text else []
    for items in block.lists:
        lines.append("")
        for item in items:
            bullet = f"  • [bold]{escape(item.text)}[/bold]"
            if item.description:
                bullet += f" -- {escape(item.description)}"
            lines.append(bullet)
    console.print(Panel("\n".join(lines), title=title, title_align="left"))


def _render_result(topic: str, result: ExplorationResult) -> None:
    console.rule(f"[bold]{escape(topic)}[/bold]")
    if result.disclaimer:
        console.print(f"[yellow]{escape(result.disclaimer)}[/yellow]")
    _render_block("Summary", result.summary)
    _render_block("Detailed summary", result.detailed_summary)

    if result.examples:
        table = Table(title="Examples", show_lines=True)
        table.add_column("Example", style="bold")
        table.add_column("Description")
        table.add_column("Significance")
        for ex in result.examples:
            table.add_row(escape(ex.title), escape(ex.description), escape(ex.significance))
        console.print(table)

    if result.explore_paths:
        table = Table(title="Explore further", show_lines=True)
        table.add_column("#", justify="right")
        table.add_column("Path", style="bold cyan")
        table.add_column("Description")
        for i, path in enumerate(result.explore_paths, start=1):
            table.add_row(str(i), escape(path.title), escape(path.description))
        console.print(table)

    for conn in result.connections:
        console.print(f"[dim]↔[/dim] [bold]{escape(conn.title)}[/bold] {escape(conn.description)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def explore(
    topic: str = typer.Argument(..., help="Topic to explore."),
    context: str = typer.Option("", "--context", "-c", help="Parent focus text."),
    path: Optional[List[str]] = typer.Option(
        None, "--path", "-p", help='Ancestor as "Title: description", root first. Repeatable.'
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to a .env file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Run one exploration and print the result."""
    from .web.server import build_pipeline

    _setup_logging(verbose)
    if not topic.strip():
        console.print("[red]Error:[/red] Topic is required.")
        raise typer.Exit(code=1)

    cfg = _load_config_or_exit(env_file)
    pipeline = build_pipeline(cfg)

    request = ExplorationRequest(
        topic=topic.strip(),
        parent_context=context,
        path_history=[_parse_path_entry(p) for p in path or []],
    )

    try:
        with console.status("Starting...") as status:
            reporter = ConsoleReporter(status)
            result = asyncio.run(pipeline.explore(request, reporter))
            report_milestone(reporter, Milestone.complete)
    except ExplorationError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_wire(), indent=2))
        return
    _render_result(request.topic, result)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address."),
    port: int = typer.Option(8000, "--port", help="Port number."),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to a .env file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Launch the streaming exploration API."""
    from .web.server import start_server

    _setup_logging(verbose)
    cfg = _load_config_or_exit(env_file)

    console.print(f"[bold cyan]Serving[/bold cyan] http://{host}:{port}/api/explore")
    console.print(f"  CORS origins: {', '.join(cfg.cors_origins) or '(none)'}")
    start_server(cfg, host=host, port=port)


if __name__ == "__main__":
    app()
