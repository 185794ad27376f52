"""Diff-to-report pipeline.

    resolve target → filter paths → collect diffs → redact secrets
        → estimate budget → (abort) → commit messages → audit → normalize → report

Raw diff text only ever reaches the redactor; every later stage, including
the budget estimate, the preview and the providers, sees the sanitized
content.
"""

from __future__ import annotations

import logging
import time

from diffguard_core.budget import EXCEEDED, BudgetEstimate, check_budget
from diffguard_core.cache import AuditCache
from diffguard_core.collector import collect_review_input
from diffguard_core.commit_audit import audit_commits
from diffguard_core.config import get_guardrails, load_guidelines
from diffguard_core.errors import BudgetExceededError
from diffguard_core.filters import FileFilter
from diffguard_core.git.repo import GitRepository
from diffguard_core.models import (
    AuditIssue,
    AuditResult,
    AuditStatus,
    CommitAuditResult,
    FileAuditResult,
    RedactionReport,
    ReviewReport,
    ReviewTarget,
    SanitizedFile,
    Severity,
)
from diffguard_core.orchestrator import AuditOrchestrator
from diffguard_core.prompts import build_system_prompt
from diffguard_core.providers.factory import build_providers
from diffguard_core.report import build_report
from diffguard_core.security.redactor import PayloadPreview, SecretRedactor, build_payload_preview
from diffguard_core.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

AI_DISABLED_MESSAGE = "AI disabled"


def security_only_results(
    files: list[SanitizedFile],
    redactions: list[RedactionReport],
) -> list[FileAuditResult]:
    """Results for runs without a model: PASS unless the redactor found secrets."""
    by_path = {r.path: r for r in redactions}
    results = []
    for f in files:
        report = by_path.get(f.path)
        if report is None:
            result = AuditResult(status=AuditStatus.PASS, message=AI_DISABLED_MESSAGE)
        else:
            issue = AuditIssue(
                line=1,
                severity=Severity.CRITICAL,
                message=(
                    f"Potential secret detected ({report.redacted_count} redaction(s)): "
                    f"{', '.join(report.matched_pattern_names)}"
                ),
                suggestion="Remove the secret from the change, load it from the environment and rotate it.",
            )
            result = AuditResult(status=AuditStatus.FAIL, issues=(issue,))
        results.append(FileAuditResult(file_path=f.path, result=result, duration_ms=0))
    return results


class ReviewPipeline:
    """Run one review. Intermediate artefacts stay readable after :meth:`run`.

    ``providers`` is an optional ``(primary, fallbacks)`` pair; when omitted
    they are built from the config the first time the model is needed.
    """

    def __init__(
        self,
        config: dict,
        git=None,
        store=None,
        ai_enabled: bool = True,
        dry_run: bool = False,
        audit_commit_messages: bool = True,
        providers=None,
        on_progress=None,
        root: str = ".",
        sleep=None,
    ):
        self.config = config
        self.git = git or GitRepository(root)
        self.store = store
        self.ai_enabled = ai_enabled and not dry_run
        self.dry_run = dry_run
        self.audit_commit_messages = audit_commit_messages
        self.providers = providers
        self.on_progress = on_progress
        self.root = root
        self._sleep = sleep

        self.input_files = ()
        self.redactions: list[RedactionReport] = []
        self.budget: BudgetEstimate | None = None
        self.preview: list[PayloadPreview] = []
        self.commit_results: list[CommitAuditResult] = []

    async def run(self, target: ReviewTarget) -> ReviewReport:
        start = time.monotonic()

        candidates = self.git.list_changed_paths(target)
        filtered = FileFilter.from_repo(self.root, self.config).filter(candidates)
        logger.info(
            "%d candidate file(s): %d accepted, %d rejected.",
            len(candidates),
            len(filtered.accepted),
            len(filtered.rejected),
        )

        collection = collect_review_input(filtered.accepted, target, self.git, get_guardrails(self.config))
        self.input_files = collection.files
        skipped = [*filtered.rejected, *collection.skipped]

        sanitized, self.redactions = SecretRedactor().sanitize_files(collection.files)

        if not sanitized:
            logger.info("No files to review for %s.", target.describe())
            await self._audit_commits(target)
            return self._report(target, skipped=skipped, start=start, total_changed=collection.total_changed_lines)

        if self.dry_run or self.ai_enabled:
            system_prompt = build_system_prompt(self.config, load_guidelines(self.config))
            self.budget = check_budget(
                sanitized,
                system_prompt,
                self.config["provider"],
                self.config.get("ai", {}).get("token_limit"),
            )
            if self.budget.outcome == EXCEEDED:
                if not self.dry_run:
                    raise BudgetExceededError(self.budget.total, self.budget.limit)
                logger.warning(
                    "Estimated payload of %d tokens exceeds the %d token limit; a real run would abort.",
                    self.budget.total,
                    self.budget.limit,
                )

        if not self.ai_enabled:
            if self.dry_run:
                self.preview = build_payload_preview(sanitized, self.redactions)
            results = security_only_results(sanitized, self.redactions)
            return self._report(
                target,
                results=results,
                skipped=skipped,
                start=start,
                total_changed=collection.total_changed_lines,
            )

        await self._audit_commits(target)

        primary, fallbacks = self._resolve_providers()
        orchestrator = AuditOrchestrator(
            provider=primary,
            fallbacks=fallbacks,
            system_prompt=system_prompt,
            cache=AuditCache(self.store, enabled=self.config.get("cache_enabled", True)),
            max_concurrency=get_guardrails(self.config).max_concurrency,
            retry_policy=RetryPolicy(max_attempts=self.config.get("ai", {}).get("max_attempts", 3)),
            prompt_version=self.config.get("ai", {}).get("prompt_version"),
            sleep=self._sleep,
            on_progress=self.on_progress,
        )
        run = await orchestrator.audit_files(sanitized)
        return self._report(
            target,
            results=run.results,
            skipped=skipped,
            errors=run.errors,
            start=start,
            total_changed=collection.total_changed_lines,
        )

    def _resolve_providers(self):
        if self.providers is None:
            self.providers = build_providers(self.config)
        return self.providers

    async def _audit_commits(self, target: ReviewTarget) -> None:
        """Check commit messages for commit and range targets, after the budget check."""
        if not (self.ai_enabled and self.audit_commit_messages) or target.kind not in ("commit", "range"):
            return
        commits = self.git.list_commits(target)
        if not commits:
            return
        primary, _ = self._resolve_providers()
        self.commit_results = await audit_commits(commits, primary, self.config)

    def _report(self, target, results=(), skipped=(), errors=(), start: float = 0.0, total_changed: int = 0):
        return build_report(
            target=target,
            ai_enabled=self.ai_enabled,
            results=results,
            skipped=skipped,
            errors=errors,
            duration_ms=int((time.monotonic() - start) * 1000),
            total_changed_lines=total_changed,
            commits=self.commit_results,
        )
