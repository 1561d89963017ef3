"""CLI commands for caiide-memory.

Every command opens its own worker connection, runs one memory operation and
disconnects again.
"""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from caiide_memory import __logo__, __version__
from caiide_memory.cli.shared.logging_utils import configure_cli_logging
from caiide_memory.config.loader import load_config
from caiide_memory.config.schema import Config
from caiide_memory.memory.client import MemoryClient
from caiide_memory.memory.presentation import (
    MEMORY_TYPES,
    detect_language,
    merge_tags,
    parse_tags,
    preview,
    stats_rows,
)
from caiide_memory.memory.types import MemoryEntry
from caiide_memory.rpc.errors import RpcClientError

T = TypeVar("T")

app = typer.Typer(
    name="caiide-memory",
    help=f"{__logo__} caiide-memory - talk to the memory worker",
    no_args_is_help=True,
)

console = Console()


@dataclass(slots=True)
class CliState:
    config: Config
    command: str | None = None


def create_client(state: CliState) -> MemoryClient:
    return MemoryClient.from_config(state.config, command=state.command)


def _run(ctx: typer.Context, operation: Callable[[MemoryClient], Awaitable[T]]) -> T:
    state: CliState = ctx.obj

    async def _session() -> T:
        client = create_client(state)
        await client.connect()
        try:
            return await operation(client)
        finally:
            await client.disconnect()

    try:
        return asyncio.run(_session())
    except RpcClientError as exc:
        console.print(f"[red]{exc.code}:[/red] {exc.message}")
        raise typer.Exit(1) from None


def _entries_table(title: str, entries: list[MemoryEntry]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Content")
    table.add_column("Source")
    table.add_column("Relevance")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.doc_type,
            preview(entry.content),
            entry.source,
            f"{entry.relevance:.3f}" if entry.relevance is not None else "",
        )
    return table


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} caiide-memory v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to memory.json"),
    command: str = typer.Option(None, "--command", help="Override the worker command"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show client logs on stderr"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Debug logging, including worker stderr"),
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """caiide-memory - talk to the memory worker."""
    try:
        config = load_config(config_path)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None
    configure_cli_logging(logs=logs, debug=debug, level=config.log_level)
    ctx.obj = CliState(config=config, command=command)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(None, "--limit", "-n", help="Maximum results"),
):
    """Search stored memories."""
    state: CliState = ctx.obj
    count = limit or state.config.search_limit
    results = _run(ctx, lambda client: client.search(query, count))
    if not results:
        console.print("[yellow]No memories found[/yellow]")
        return
    console.print(_entries_table(f"Found {len(results)} memories", results))


@app.command()
def store(
    ctx: typer.Context,
    text: str = typer.Argument(None, help="Text to store (reads --file or stdin when omitted)"),
    file: Path = typer.Option(None, "--file", "-f", help="Store the contents of a file"),
    doc_type: str = typer.Option(
        None, "--type", "-t", help=f"Memory type ({', '.join(MEMORY_TYPES)}); defaults to file or note"
    ),
    source: str = typer.Option(None, "--source", "-s", help="Source label (defaults to the file path)"),
    tags: list[str] = typer.Option(None, "--tag", help="Tag to attach (repeatable, commas also split)"),
):
    """Store a memory."""
    state: CliState = ctx.obj
    if file is not None:
        try:
            content = file.read_text(encoding="utf-8")
        except OSError as exc:
            console.print(f"[red]Cannot read {file}: {exc}[/red]")
            raise typer.Exit(1) from None
        doc_type = doc_type or "file"
        source = source or str(file)
    elif text is not None:
        content = text
    else:
        content = sys.stdin.read()
    if not content.strip():
        console.print("[yellow]Nothing to store[/yellow]")
        raise typer.Exit(1)
    doc_type = doc_type or "note"
    extra_tags = [tag for value in tags or [] for tag in parse_tags(value)]
    all_tags = merge_tags(state.config.default_tags, extra_tags)
    memory_id = _run(ctx, lambda client: client.store(content, doc_type, source or "cli", all_tags))
    console.print(f"[green]✓[/green] Memory stored{f' ({memory_id})' if memory_id else ''}")


@app.command()
def recall(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Memory id"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw entry as JSON"),
):
    """Show one memory."""
    entry = _run(ctx, lambda client: client.recall(memory_id))
    if entry is None:
        console.print(f"[yellow]Memory {memory_id} not found[/yellow]")
        raise typer.Exit(1)
    if as_json:
        console.print_json(json.dumps(asdict(entry)))
        return
    console.print(f"[cyan]{entry.id}[/cyan] {entry.doc_type} · {entry.source} ({detect_language(entry.source)})")
    if entry.tags:
        console.print(f"[dim]tags: {', '.join(entry.tags)}[/dim]")
    console.print(entry.content, markup=False, highlight=False)


@app.command("list")
def list_memories(
    ctx: typer.Context,
    limit: int = typer.Option(None, "--limit", "-n", help="Maximum entries"),
):
    """List recent memories."""
    state: CliState = ctx.obj
    count = limit or state.config.list_limit
    entries = _run(ctx, lambda client: client.list(count))
    if not entries:
        console.print("[yellow]No memories yet[/yellow]")
        return
    console.print(_entries_table(f"Recent memories ({len(entries)})", entries))


@app.command()
def stats(ctx: typer.Context):
    """Show worker statistics."""
    result = _run(ctx, lambda client: client.get_stats())
    table = Table(title="Memory Stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    for name, value in stats_rows(result):
        table.add_row(name, value)
    console.print(table)


@app.command()
def delete(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Memory id"),
):
    """Delete a memory."""
    _run(ctx, lambda client: client.delete(memory_id))
    console.print(f"[green]✓[/green] Deleted {memory_id}")


@app.command()
def ping(ctx: typer.Context):
    """Connect to the worker and print its capabilities."""

    async def _capabilities(client: MemoryClient) -> Any:
        return client.server_capabilities

    capabilities = _run(ctx, _capabilities)
    console.print("[green]✓[/green] Memory worker is reachable")
    if capabilities is not None:
        console.print_json(json.dumps(capabilities, default=str))
