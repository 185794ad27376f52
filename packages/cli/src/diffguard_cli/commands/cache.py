"""cache commands: inspect and clear the audit cache."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from diffguard_core.errors import ConfigurationError

console = Console()


def _format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KiB"
    return f"{num_bytes / (1024 * 1024):.1f} MiB"


def _open_store(ctx):
    from diffguard_cli.cli import _build_store
    from diffguard_core.config import load_config

    try:
        config = load_config((ctx.obj or {}).get("config_path", ".diffguard.yml"))
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    # Inspecting the cache is independent of whether reviews read from it.
    config["cache_enabled"] = True
    store = _build_store(config)
    ctx.call_on_close(store.close)
    return store, config["store"]


@click.group("cache")
def cache_group():
    """Inspect or clear cached audit results."""


@cache_group.command("stats")
@click.option("--top", default=10, show_default=True, help="Number of most recent entries to list.")
@click.pass_context
def stats_cmd(ctx, top: int):
    """Show how many audit results are cached and how much space they use."""
    store, store_type = _open_store(ctx)
    entries = store.entries()
    if not entries:
        console.print(f"[yellow]The {store_type} cache is empty.[/yellow]")
        return

    total_size = sum(e.size for e in entries)
    console.print(f"\n[bold]Audit cache ([cyan]{store_type}[/cyan])[/bold]")
    console.print(f"  Entries:    {len(entries)}")
    console.print(f"  Total size: {_format_size(total_size)}")
    console.print(f"  Oldest:     {entries[0].created_at}")
    console.print(f"  Newest:     {entries[-1].created_at}")

    table = Table(title=f"{min(top, len(entries))} Most Recent Entries", show_header=True)
    table.add_column("Key")
    table.add_column("Created")
    table.add_column("Size", justify="right")
    for entry in reversed(entries[-top:]):
        table.add_row(entry.key[:16], entry.created_at, _format_size(entry.size))
    console.print(table)


@cache_group.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def clear_cmd(ctx, yes: bool):
    """Delete every cached audit result."""
    store, store_type = _open_store(ctx)
    if not yes and not click.confirm(f"Delete all entries from the {store_type} cache?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        return
    removed = store.clear()
    console.print(f"[green]Removed {removed} cached result(s).[/green]")
