"""CLI entry point for diffguard.

Commands:
  review   review staged changes, a commit, a range or explicit files
  init     write a starter .diffguard.yml
  cache    inspect or clear the audit cache
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from diffguard_cli.commands.cache import cache_group
from diffguard_cli.commands.init import init_cmd
from diffguard_cli.commands.review import review_cmd

# Progress and diagnostics go to stderr so --format json stays parseable on stdout.
console = Console(stderr=True)


def _get_version() -> str:
    try:
        return importlib.metadata.version("diffguard")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+local"


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=False)],
        force=True,
    )


def _build_store(config: dict):
    """Instantiate the configured cache store from .diffguard.yml settings.

    Store selection hierarchy:
      cache_enabled: false → NoOpStore
      store: directory     → DirectoryStore (store_path or .diffguard-cache/)
      store: sqlite        → SQLiteStore (store_path or .diffguard-cache.db)
      store: none          → NoOpStore
    """
    from diffguard_store.noop import NoOpStore

    store_type = config.get("store", "directory")

    if not config.get("cache_enabled", True) or store_type == "none":
        return NoOpStore()

    if store_type == "sqlite":
        from diffguard_store.sqlite import DEFAULT_DB_PATH, SQLiteStore

        return SQLiteStore(db_path=config.get("store_path") or DEFAULT_DB_PATH)

    from diffguard_store.directory import DEFAULT_CACHE_DIR, DirectoryStore

    return DirectoryStore(cache_dir=config.get("store_path") or DEFAULT_CACHE_DIR)


@click.group()
@click.version_option(version=_get_version(), prog_name="diffguard")
@click.option(
    "--config",
    "config_path",
    default=".diffguard.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="DIFFGUARD_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """LLM-backed review of git changes with guardrails and secret redaction."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


main.add_command(review_cmd)
main.add_command(init_cmd)
main.add_command(cache_group)
