"""Fold per-file results into the final ReviewReport."""

from __future__ import annotations

from diffguard_core.models import (
    AuditStatus,
    CommitAuditResult,
    FileAuditResult,
    ReviewReport,
    ReviewSummary,
    ReviewTarget,
    Severity,
    SkippedFile,
)

EXIT_CODES = {
    AuditStatus.PASS: 0,
    AuditStatus.FAIL: 1,
    AuditStatus.ERROR: 2,
}


def determine_status(results, errors, commits=()) -> AuditStatus:
    """ERROR dominates FAIL, which dominates PASS.

    Commit-message results count the same way as file results.
    """
    outcomes = [r.result for r in results] + [c.result for c in commits]
    if errors or any(r.status == AuditStatus.ERROR for r in outcomes):
        return AuditStatus.ERROR
    if any(r.status == AuditStatus.FAIL or r.issues for r in outcomes):
        return AuditStatus.FAIL
    return AuditStatus.PASS


def summarize(results, skipped, duration_ms: int = 0, total_changed_lines: int = 0) -> ReviewSummary:
    severity_counts = {s: 0 for s in Severity}
    for r in results:
        for issue in r.result.issues:
            severity_counts[issue.severity] += 1
    by_status = {s: 0 for s in AuditStatus}
    for r in results:
        by_status[r.result.status] += 1
    return ReviewSummary(
        total_files=len(results) + len(skipped),
        audited_files=len(results),
        passed_files=by_status[AuditStatus.PASS],
        failed_files=by_status[AuditStatus.FAIL],
        error_files=by_status[AuditStatus.ERROR],
        critical_issues=severity_counts[Severity.CRITICAL],
        warning_issues=severity_counts[Severity.WARNING],
        info_issues=severity_counts[Severity.INFO],
        duration_ms=duration_ms,
        total_changed_lines=total_changed_lines,
    )


def build_report(
    target: ReviewTarget,
    ai_enabled: bool,
    results: list[FileAuditResult] | tuple[FileAuditResult, ...] = (),
    skipped: list[SkippedFile] | tuple[SkippedFile, ...] = (),
    errors: list[str] | tuple[str, ...] = (),
    duration_ms: int = 0,
    total_changed_lines: int = 0,
    commits: list[CommitAuditResult] | tuple[CommitAuditResult, ...] = (),
) -> ReviewReport:
    results = tuple(results)
    skipped = tuple(skipped)
    errors = tuple(errors)
    commits = tuple(commits)
    return ReviewReport(
        status=determine_status(results, errors, commits),
        target=target,
        ai_enabled=ai_enabled,
        summary=summarize(results, skipped, duration_ms, total_changed_lines),
        results=results,
        skipped=skipped,
        errors=errors,
        commits=commits,
    )


def exit_code_for(report: ReviewReport) -> int:
    return EXIT_CODES[report.status]
