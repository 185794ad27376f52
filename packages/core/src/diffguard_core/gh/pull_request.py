"""Publish report findings as a GitHub pull request review."""

from __future__ import annotations

import logging
import os
import re

from github import Auth, Github

from diffguard_core.models import AuditStatus, ReviewReport
from diffguard_core.utils.diff import get_diff_positions

logger = logging.getLogger(__name__)

REVIEW_MARKER = "<!-- diffguard-review -->"
_PULL_REF_RE = re.compile(r"^refs/pull/(\d+)/(?:merge|head)$")


def get_repo(repo_name: str, token: str):
    return Github(auth=Auth.Token(token)).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def resolve_pr_context(repo_name: str | None = None, pr_number: int | None = None) -> tuple[str | None, int | None]:
    """Fill in repository and PR number from GitHub Actions variables when not given."""
    repo_name = repo_name or os.environ.get("GITHUB_REPOSITORY")
    if pr_number is None:
        match = _PULL_REF_RE.match(os.environ.get("GITHUB_REF", ""))
        if match:
            pr_number = int(match.group(1))
    return repo_name, pr_number


def already_commented(
    existing_comments,
    file_path: str,
    file_line: int,
    comment_text: str,
    queued: set[tuple] | None = None,
) -> bool:
    """Check whether an identical comment already exists on the PR for this file+line.

    Checks both GitHub's existing review comments and any comments queued in the
    current run.
    """
    text = comment_text.strip()
    if queued is not None and (file_path, file_line, text) in queued:
        return True
    for c in existing_comments:
        # c.line is None for comments whose line no longer exists in the current diff
        # (e.g. after a force-push). Fall back to original_line in that case.
        comment_line = c.line if c.line is not None else getattr(c, "original_line", None)
        if c.path == file_path and comment_line == file_line and text in (c.body or "").strip():
            return True
    return False


def format_issue_body(issue) -> str:
    body = f"**[{issue.severity}]** {issue.message}"
    if issue.suggestion:
        body += f"\n\n_Suggestion:_ {issue.suggestion}"
    return body


def build_review_comments(report: ReviewReport, input_files, existing_comments=()) -> list[dict]:
    """Map FAIL findings onto commentable diff positions.

    Issues on lines outside the diff, and issues already posted, are dropped.
    """
    patches = {f.path: f.patch for f in input_files}
    queued: set[tuple] = set()
    comments: list[dict] = []

    for file_result in report.results:
        if file_result.result.status != AuditStatus.FAIL:
            continue
        patch = patches.get(file_result.file_path)
        if not patch:
            continue
        positions = get_diff_positions(patch)
        for issue in file_result.result.issues:
            if issue.line not in positions:
                logger.debug("Skipping comment for %s:%d (not in diff positions)", file_result.file_path, issue.line)
                continue
            body = format_issue_body(issue)
            if already_commented(existing_comments, file_result.file_path, issue.line, body, queued):
                logger.debug("Skipping duplicate comment for %s:%d", file_result.file_path, issue.line)
                continue
            comments.append({"path": file_result.file_path, "position": positions[issue.line], "body": body})
            queued.add((file_result.file_path, issue.line, body.strip()))

    return comments


def publish_review(
    report: ReviewReport,
    input_files,
    repo_name: str,
    pr_number: int,
    token: str,
    summary_body: str,
    repo_obj=None,
) -> int:
    """Post one COMMENT review with inline findings and return the number of comments posted."""
    this_repo = repo_obj if repo_obj is not None else get_repo(repo_name, token)
    this_pr = get_pull(this_repo, pr_number)
    existing_comments = list(this_pr.get_review_comments())
    comments = build_review_comments(report, input_files, existing_comments)
    this_pr.create_review(body=f"{summary_body}\n\n{REVIEW_MARKER}", event="COMMENT", comments=comments)
    logger.info("Posted review on %s#%d with %d inline comment(s).", repo_name, pr_number, len(comments))
    return len(comments)
