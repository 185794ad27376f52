"""init command: write a starter .diffguard.yml and, optionally, a CI workflow."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path

import click
import yaml
from rich.console import Console

from diffguard_core.config import KNOWN_PROVIDERS, KNOWN_STORES
from diffguard_core.providers.factory import API_KEY_ENV

console = Console()

_IGNORE_TEMPLATE = """\
# Paths diffguard never sends to a provider (same syntax as .gitignore).
# Lines starting with ! re-include a path ignored by an earlier pattern.
dist/
*.min.js
"""

_WORKFLOW_TEMPLATE = """\
name: diffguard

on:
  pull_request:
    types: [opened, synchronize, reopened]

jobs:
  review:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: write

    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install diffguard
        run: pip install "diffguard[{provider}]=={version}"

      - name: Review changes
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
        run: |
          diffguard review \\
            --range origin/${{{{ github.base_ref }}}}...HEAD \\
            --format markdown \\
            --publish
"""


@click.command("init")
@click.option("--provider", type=click.Choice(list(KNOWN_PROVIDERS)), default=None, help="AI provider.")
@click.option("--store", "store_type", type=click.Choice(list(KNOWN_STORES)), default=None, help="Cache backend.")
@click.option("--workflow/--no-workflow", default=None, help="Also write .github/workflows/diffguard.yml.")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.pass_context
def init_cmd(ctx, provider: str | None, store_type: str | None, workflow: bool | None, force: bool):
    """Set up diffguard in the current repository.

    Writes the configuration file and a .diffguardignore, then optionally
    generates a GitHub Actions workflow that publishes reviews on pull requests.
    """
    config_path = Path((ctx.obj or {}).get("config_path", ".diffguard.yml"))
    if config_path.exists() and not force:
        raise click.UsageError(f"{config_path} already exists. Use --force to overwrite it.")

    console.print("\n[bold cyan]diffguard init[/bold cyan]\n")

    if provider is None:
        provider = click.prompt("AI provider", type=click.Choice(list(KNOWN_PROVIDERS)), default="anthropic")
    if store_type is None:
        console.print("\nAudit cache:")
        console.print("  [bold]directory[/bold]  one JSON file per entry under .diffguard-cache/ (default)")
        console.print("  [bold]sqlite[/bold]     a single .diffguard-cache.db file")
        console.print("  [bold]none[/bold]       no caching")
        store_type = click.prompt("Cache backend", type=click.Choice(list(KNOWN_STORES)), default="directory")

    config = _starter_config(provider, store_type)
    config_path.write_text(yaml.dump(config, default_flow_style=False, sort_keys=False))
    console.print(f"[green]Created {config_path}[/green]")

    ignore_path = Path(".diffguardignore")
    if not ignore_path.exists():
        ignore_path.write_text(_IGNORE_TEMPLATE)
        console.print("[green]Created .diffguardignore[/green]")

    api_key_env = API_KEY_ENV[provider]
    if workflow is None:
        workflow = click.confirm("\nGenerate .github/workflows/diffguard.yml for GitHub Actions?", default=False)
    if workflow:
        _write_workflow(provider, api_key_env)
        console.print("[green]Created .github/workflows/diffguard.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print(f"\nExport [bold]{api_key_env}[/bold], then run: [bold]diffguard review[/bold]")


def _starter_config(provider: str, store_type: str) -> dict:
    return {
        "provider": provider,
        "max_concurrency": 5,
        "store": store_type,
        "target_branch": "origin/main",
        "rules": [],
        "ai": {
            "max_files": 15,
            "max_diff_lines": 1200,
            "max_chars_per_file": 12000,
            "fallback_providers": [],
        },
    }


def _get_version() -> str:
    try:
        return importlib.metadata.version("diffguard")
    except importlib.metadata.PackageNotFoundError:
        return "0.3.0"


def _write_workflow(provider: str, api_key_env: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "diffguard.yml").write_text(
        _WORKFLOW_TEMPLATE.format(provider=provider, api_key_env=api_key_env, version=_get_version())
    )
