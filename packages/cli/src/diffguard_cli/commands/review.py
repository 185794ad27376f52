"""review command: run the diff-to-report pipeline on the current repository."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from github import GithubException
from rich.console import Console

from diffguard_cli.render import (
    format_markdown_report,
    print_console_report,
    print_payload_preview,
    report_to_json,
)
from diffguard_core.errors import BudgetExceededError, ConfigurationError
from diffguard_core.gh.pull_request import publish_review, resolve_pr_context
from diffguard_core.git.repo import GitRepository
from diffguard_core.pipeline import ReviewPipeline
from diffguard_core.report import exit_code_for
from diffguard_core.target import resolve_target

console = Console(stderr=True)


def _print_progress(done: int, total: int) -> None:
    console.print(f"[dim]Audited {done}/{total} file(s)[/dim]")


def _publish(report, input_files, repo_name: str | None, pr_number: int | None) -> None:
    """Post findings to the pull request. Problems are reported, never fatal."""
    from diffguard_cli.auth import resolve_github_token

    repo_name, pr_number = resolve_pr_context(repo_name, pr_number)
    if not repo_name or pr_number is None:
        console.print("[yellow]--publish: no pull request context (use --repo and --pr). Skipping.[/yellow]")
        return
    token = resolve_github_token()
    if not token:
        console.print("[yellow]--publish: no GitHub token found. Set GITHUB_TOKEN or run `gh auth login`.[/yellow]")
        return
    try:
        posted = publish_review(
            report,
            input_files,
            repo_name=repo_name,
            pr_number=pr_number,
            token=token,
            summary_body=format_markdown_report(report),
        )
    except GithubException as e:
        console.print(f"[yellow]--publish: could not post review to {repo_name}#{pr_number}: {e}[/yellow]")
        return
    console.print(f"[green]Posted review to {repo_name}#{pr_number} with {posted} inline comment(s).[/green]")


@click.command("review")
@click.argument("paths", nargs=-1)
@click.option("--staged", is_flag=True, help="Review staged changes (git diff --cached).")
@click.option("--commit", default=None, help="Review a single commit.")
@click.option("--range", "range_spec", default=None, help="Review a commit range, e.g. origin/main...HEAD.")
@click.option("--files", "files", multiple=True, help="Review explicit files (repeatable).")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json", "markdown"]),
    default="console",
    show_default=True,
    help="Report format written to stdout.",
)
@click.option("--ai/--no-ai", "ai_flag", default=None, help="Force AI review on or off.")
@click.option("--target-branch", default=None, help="Branch compared against HEAD when no target is given.")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Maximum parallel provider calls.")
@click.option("--dry-run", is_flag=True, help="Show what would be sent without calling any provider.")
@click.option("--skip-commit", is_flag=True, help="Do not check commit messages of --commit / --range targets.")
@click.option("--output", "output_path", type=click.Path(dir_okay=False), default=None, help="Also write the report here.")
@click.option("--publish", is_flag=True, help="Post findings as a GitHub pull request review.")
@click.option("--repo", "repo_name", default=None, help="GitHub repository (owner/name) for --publish.")
@click.option("--pr", "pr_number", type=int, default=None, help="Pull request number for --publish.")
@click.pass_context
def review_cmd(
    ctx,
    paths: tuple[str, ...],
    staged: bool,
    commit: str | None,
    range_spec: str | None,
    files: tuple[str, ...],
    output_format: str,
    ai_flag: bool | None,
    target_branch: str | None,
    concurrency: int | None,
    dry_run: bool,
    skip_commit: bool,
    output_path: str | None,
    publish: bool,
    repo_name: str | None,
    pr_number: int | None,
):
    """Review changed files with an LLM and print a report.

    With no selector, HEAD is compared against the target branch
    (origin/main by default). Commit and range targets also have their
    commit messages checked unless --skip-commit is given. Exit code:
    0 PASS, 1 FAIL, 2 ERROR or configuration/budget error.

    \b
    Environment variables:
      ANTHROPIC_API_KEY / OPENAI_API_KEY / GEMINI_API_KEY   provider credentials
      DIFFGUARD_AI            force AI on/off (1/0, true/false)
      DIFFGUARD_TOKEN_LIMIT   override the provider token limit
      GITHUB_TOKEN            required for --publish
    """
    from diffguard_cli.cli import _build_store
    from diffguard_core.config import load_config, resolve_ai_enabled

    config_path = (ctx.obj or {}).get("config_path", ".diffguard.yml")
    try:
        config = load_config(
            config_path,
            cli_overrides={"max_concurrency": concurrency, "target_branch": target_branch},
        )
        target = resolve_target(
            staged=staged,
            commit=commit,
            range_spec=range_spec,
            files=[*files, *paths] or None,
            target_branch=config["target_branch"],
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    git = GitRepository(".")
    if not git.is_git_repository():
        raise click.UsageError("Not inside a git repository.")

    ai_enabled = resolve_ai_enabled(config, target.kind, ai_flag)
    store = None
    if ai_enabled and not dry_run:
        store = _build_store(config)
        ctx.call_on_close(store.close)

    console.print(f"[cyan]Reviewing {target.describe()}[/cyan]")
    pipeline = ReviewPipeline(
        config,
        git=git,
        store=store,
        ai_enabled=ai_enabled,
        dry_run=dry_run,
        audit_commit_messages=not skip_commit,
        on_progress=_print_progress,
    )
    try:
        report = asyncio.run(pipeline.run(target))
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    except BudgetExceededError as e:
        console.print(f"[red]Budget exceeded: {e}[/red]")
        ctx.exit(2)

    if dry_run:
        print_payload_preview(pipeline.preview, pipeline.budget, console)

    if output_format == "json":
        rendered = report_to_json(report)
        click.echo(rendered)
    elif output_format == "markdown":
        rendered = format_markdown_report(report)
        click.echo(rendered)
    else:
        print_console_report(report, Console())
        rendered = format_markdown_report(report)

    if output_path:
        Path(output_path).write_text(rendered, encoding="utf-8")
        console.print(f"[dim]Report written to {output_path}[/dim]")

    if publish:
        _publish(report, pipeline.input_files, repo_name, pr_number)

    ctx.exit(exit_code_for(report))
