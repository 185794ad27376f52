"""Report renderers: JSON, rich console and Markdown.

All three read the same ReviewReport and compute nothing new.
"""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from diffguard_core.models import AuditStatus, ReviewReport

_STATUS_STYLE = {"PASS": "green", "FAIL": "yellow", "ERROR": "red"}
_SEVERITY_STYLE = {"CRITICAL": "red", "WARNING": "yellow", "INFO": "blue"}
_STATUS_ICON = {"PASS": "✅", "FAIL": "❌", "ERROR": "⚠️"}


def report_to_json(report: ReviewReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def _format_duration(duration_ms: int) -> str:
    seconds = duration_ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f} min"


def print_console_report(report: ReviewReport, console: Console) -> None:
    """Print a human summary followed by findings for every FAIL/ERROR file."""
    summary = report.summary
    style = _STATUS_STYLE[str(report.status)]
    console.print(
        f"\n[bold]diffguard review[/bold] · {report.target.describe()} · "
        f"AI {'enabled' if report.ai_enabled else 'disabled'}"
    )

    table = Table(title="Summary", show_header=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(summary.total_files))
    table.add_row("Audited", str(summary.audited_files))
    table.add_row("Passed", str(summary.passed_files))
    table.add_row("Failed", str(summary.failed_files))
    table.add_row("Errored", str(summary.error_files))
    table.add_row("Skipped", str(len(report.skipped)))
    table.add_row("[red]Critical[/red]", str(summary.critical_issues))
    table.add_row("[yellow]Warning[/yellow]", str(summary.warning_issues))
    table.add_row("[blue]Info[/blue]", str(summary.info_issues))
    table.add_row("Changed lines", str(summary.total_changed_lines))
    table.add_row("Duration", _format_duration(summary.duration_ms))
    console.print(table)

    if report.skipped:
        console.print(f"\n[dim]Skipped {len(report.skipped)} file(s):[/dim]")
        for s in report.skipped:
            console.print(f"  [dim]{escape(s.path)} ({escape(s.reason)})[/dim]")

    for r in report.results:
        if r.result.status == AuditStatus.PASS and not r.result.issues:
            continue
        file_style = _STATUS_STYLE[str(r.result.status)]
        cached = " [dim](cached)[/dim]" if r.cached else ""
        console.print(
            f"\n[bold cyan]{escape(r.file_path)}[/bold cyan]  [{file_style}]{r.result.status}[/{file_style}]{cached}"
        )
        if r.result.message:
            console.print(f"  {escape(r.result.message)}")
        for issue in r.result.issues:
            sev_style = _SEVERITY_STYLE.get(str(issue.severity), "white")
            console.print(
                f"  line [bold]{issue.line}[/bold]  [{sev_style}]{issue.severity}[/{sev_style}]  {escape(issue.message)}"
            )
            if issue.suggestion:
                console.print(f"    [dim]→ {escape(issue.suggestion)}[/dim]")

    if report.commits:
        console.print("\n[bold]Commit messages[/bold]")
        for c in report.commits:
            commit_style = _STATUS_STYLE[str(c.result.status)]
            console.print(
                f"  [{commit_style}]{c.result.status}[/{commit_style}]"
                f"  {c.commit.short_sha}  {escape(c.commit.subject)}"
            )
            if c.result.status != AuditStatus.PASS and c.result.message:
                console.print(f"    {escape(c.result.message)}")
            if c.result.suggestion:
                console.print(f"    [dim]→ {escape(c.result.suggestion)}[/dim]")

    if report.errors:
        console.print("\n[red]Runtime errors:[/red]")
        for error in report.errors:
            console.print(f"  [red]{escape(error)}[/red]")

    console.print(f"\n[bold {style}]Status: {report.status}[/bold {style}]")


def format_markdown_report(report: ReviewReport) -> str:
    summary = report.summary
    icon = _STATUS_ICON[str(report.status)]
    lines = [
        "# diffguard Review Report",
        "",
        f"**Status:** {icon} {report.status}  ",
        f"**Target:** {report.target.describe()}  ",
        f"**AI review:** {'enabled' if report.ai_enabled else 'disabled'}  ",
        f"**Generated:** {report.generated_at}",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|------:|",
        f"| Files | {summary.total_files} |",
        f"| Audited | {summary.audited_files} |",
        f"| Passed | {summary.passed_files} |",
        f"| Failed | {summary.failed_files} |",
        f"| Errored | {summary.error_files} |",
        f"| Skipped | {len(report.skipped)} |",
        f"| Critical | {summary.critical_issues} |",
        f"| Warning | {summary.warning_issues} |",
        f"| Info | {summary.info_issues} |",
        f"| Changed lines | {summary.total_changed_lines} |",
        f"| Duration | {_format_duration(summary.duration_ms)} |",
    ]

    if report.skipped:
        lines += ["", "## Skipped Files", ""]
        lines += [f"- `{s.path}`: {s.reason}" for s in report.skipped]

    findings = [r for r in report.results if r.result.status != AuditStatus.PASS or r.result.issues]
    if findings:
        lines += ["", "## Findings"]
        for r in findings:
            cached = " _(cached)_" if r.cached else ""
            lines += ["", f"### `{r.file_path}` · {r.result.status}{cached}", ""]
            if r.result.message:
                lines.append(f"{r.result.message}")
                lines.append("")
            for issue in r.result.issues:
                lines.append(f"- **Line {issue.line}** · **{issue.severity}** · {issue.message}")
                if issue.suggestion:
                    lines.append(f"  - Suggestion: {issue.suggestion}")

    if report.commits:
        lines += ["", "## Commit Messages", ""]
        for c in report.commits:
            line = f"- {_STATUS_ICON[str(c.result.status)]} `{c.commit.short_sha}` {c.commit.subject}"
            if c.result.status != AuditStatus.PASS and c.result.message:
                line += f": {c.result.message}"
            lines.append(line)
            if c.result.suggestion:
                lines.append(f"  - Suggestion: {c.result.suggestion}")

    if report.errors:
        lines += ["", "## Runtime Errors", ""]
        lines += [f"- {e}" for e in report.errors]

    return "\n".join(lines) + "\n"


def print_payload_preview(preview, budget, console: Console) -> None:
    """Dry-run view of what would be sent to the provider."""
    table = Table(title="Payload preview (dry run, nothing sent)", show_header=True)
    table.add_column("File")
    table.add_column("Chars", justify="right")
    table.add_column("~Tokens", justify="right")
    table.add_column("Redactions", justify="right")
    table.add_column("Keywords")
    for item in preview:
        table.add_row(
            escape(item.path),
            str(item.chars),
            str(item.estimated_tokens),
            str(item.redacted_count) if item.redacted_count else "—",
            ", ".join(item.suspicious_keywords) or "—",
        )
    console.print(table)
    if budget is not None:
        console.print(
            f"Estimated total: ~{budget.total:,} tokens of {budget.limit:,} "
            f"({budget.ratio * 100:.0f}%, {budget.outcome})"
        )
