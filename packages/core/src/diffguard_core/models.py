"""Value objects passed between pipeline stages.

Every record is a frozen dataclass: a stage builds its output once and later
stages only read it. Collections are tuples for the same reason.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

REPORT_SCHEMA_VERSION = "1.1"


class AuditStatus(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


class Severity(StrEnum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass(frozen=True)
class ReviewTarget:
    """What to review: staged changes, one commit, a commit range or explicit files."""

    kind: str  # "staged" | "commit" | "range" | "files"
    commit: str | None = None
    range: str | None = None
    files: tuple[str, ...] = ()

    @classmethod
    def staged(cls) -> ReviewTarget:
        return cls(kind="staged")

    @classmethod
    def for_commit(cls, sha: str) -> ReviewTarget:
        return cls(kind="commit", commit=sha)

    @classmethod
    def for_range(cls, spec: str) -> ReviewTarget:
        return cls(kind="range", range=spec)

    @classmethod
    def for_files(cls, paths) -> ReviewTarget:
        return cls(kind="files", files=tuple(paths))

    def describe(self) -> str:
        if self.kind == "commit":
            return f"commit {self.commit}"
        if self.kind == "range":
            return f"range {self.range}"
        if self.kind == "files":
            return f"{len(self.files)} explicit file(s)"
        return "staged changes"

    def to_dict(self) -> dict:
        data: dict = {"kind": self.kind}
        if self.commit is not None:
            data["commit"] = self.commit
        if self.range is not None:
            data["range"] = self.range
        if self.kind == "files":
            data["files"] = list(self.files)
        return data


@dataclass(frozen=True)
class SkippedFile:
    """A path that did not make it into the audit, with the reason why."""

    path: str
    reason: str

    def to_dict(self) -> dict:
        return {"path": self.path, "reason": self.reason}


@dataclass(frozen=True)
class ReviewInputFile:
    path: str
    patch: str
    additions: int
    deletions: int
    changed_lines: int
    truncated: bool = False


@dataclass(frozen=True)
class SanitizedFile:
    path: str
    content: str


@dataclass(frozen=True)
class RedactionReport:
    path: str
    redacted_count: int
    matched_pattern_names: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "redacted_count": self.redacted_count,
            "matched_pattern_names": list(self.matched_pattern_names),
        }


@dataclass(frozen=True)
class AuditIssue:
    line: int
    severity: Severity
    message: str
    suggestion: str | None = None

    def to_dict(self) -> dict:
        data = {"line": self.line, "severity": str(self.severity), "message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


@dataclass(frozen=True)
class AuditResult:
    """Canonical outcome of auditing one file.

    ERROR is reserved for pipeline and provider failures. ``issues`` is always
    a tuple, empty when the model reported nothing.
    """

    status: AuditStatus
    issues: tuple[AuditIssue, ...] = ()
    message: str | None = None
    suggestion: str | None = None

    @classmethod
    def error(cls, message: str) -> AuditResult:
        return cls(status=AuditStatus.ERROR, message=message)

    def to_dict(self) -> dict:
        data: dict = {"status": str(self.status), "issues": [issue.to_dict() for issue in self.issues]}
        if self.message:
            data["message"] = self.message
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


@dataclass(frozen=True)
class FileAuditResult:
    file_path: str
    result: AuditResult
    duration_ms: int
    cached: bool = False

    def to_dict(self) -> dict:
        return {
            "file_path": self.file_path,
            "result": self.result.to_dict(),
            "duration_ms": self.duration_ms,
            "cached": self.cached,
        }


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.message.splitlines()[0] if self.message else ""


@dataclass(frozen=True)
class CommitAuditResult:
    """Outcome of checking one commit message against the commit policy."""

    commit: CommitInfo
    result: AuditResult

    def to_dict(self) -> dict:
        return {
            "sha": self.commit.sha,
            "subject": self.commit.subject,
            "result": self.result.to_dict(),
        }


@dataclass(frozen=True)
class ReviewSummary:
    """Counters folded from every per-file result of a run."""

    total_files: int = 0
    audited_files: int = 0
    passed_files: int = 0
    failed_files: int = 0
    error_files: int = 0
    critical_issues: int = 0
    warning_issues: int = 0
    info_issues: int = 0
    duration_ms: int = 0
    total_changed_lines: int = 0

    @property
    def total_issues(self) -> int:
        return self.critical_issues + self.warning_issues + self.info_issues

    def to_dict(self) -> dict:
        return {
            "total_files": self.total_files,
            "audited_files": self.audited_files,
            "passed_files": self.passed_files,
            "failed_files": self.failed_files,
            "error_files": self.error_files,
            "critical_issues": self.critical_issues,
            "warning_issues": self.warning_issues,
            "info_issues": self.info_issues,
            "duration_ms": self.duration_ms,
            "total_changed_lines": self.total_changed_lines,
        }


@dataclass(frozen=True)
class ReviewReport:
    status: AuditStatus
    target: ReviewTarget
    ai_enabled: bool
    summary: ReviewSummary
    results: tuple[FileAuditResult, ...] = ()
    skipped: tuple[SkippedFile, ...] = ()
    errors: tuple[str, ...] = ()
    commits: tuple[CommitAuditResult, ...] = ()
    generated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    schema_version: str = REPORT_SCHEMA_VERSION

    def to_dict(self) -> dict:
        return {
            "schema_version": self.schema_version,
            "status": str(self.status),
            "target": self.target.to_dict(),
            "ai_enabled": self.ai_enabled,
            "generated_at": self.generated_at,
            "summary": self.summary.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "skipped": [s.to_dict() for s in self.skipped],
            "errors": list(self.errors),
            "commits": [c.to_dict() for c in self.commits],
        }
