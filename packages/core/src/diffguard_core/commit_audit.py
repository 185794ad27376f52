"""Commit-message checks.

Fails open: when the model cannot be reached the commit passes with a
note. A reply that arrives but cannot be parsed still goes through the
normalizer and surfaces as ERROR.
"""

from __future__ import annotations

import logging

from diffguard_core.models import AuditResult, AuditStatus, CommitAuditResult, CommitInfo
from diffguard_core.normalizer import parse_audit_response
from diffguard_core.prompts import build_commit_prompt, build_commit_user_prompt

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_MESSAGE = "AI unavailable - skipped"


async def audit_commit(message: str, provider, config: dict) -> AuditResult:
    system_prompt = build_commit_prompt(config.get("commit_format"))
    try:
        raw = await provider.generate(system_prompt, build_commit_user_prompt(message))
    except Exception as e:
        logger.warning("Commit message check failed (%s); skipping it.", e)
        return AuditResult(status=AuditStatus.PASS, message=AI_UNAVAILABLE_MESSAGE)
    return parse_audit_response(raw)


async def audit_commits(commits: list[CommitInfo], provider, config: dict) -> list[CommitAuditResult]:
    """Check each commit message in order, one call at a time."""
    results = []
    for commit in commits:
        logger.info("Auditing commit message %s: %r", commit.short_sha, commit.subject)
        result = await audit_commit(commit.message, provider, config)
        if result.status != AuditStatus.PASS:
            logger.info("%s: %s", commit.short_sha, result.message or "invalid commit message")
        results.append(CommitAuditResult(commit=commit, result=result))
    return results
