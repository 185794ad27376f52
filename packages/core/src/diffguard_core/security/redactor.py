"""Secret redaction applied to every diff before budgeting or any network call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from diffguard_core.budget import estimate_tokens
from diffguard_core.models import RedactionReport, SanitizedFile
from diffguard_core.security.patterns import REDACTION_MARKER, SECRET_PATTERNS, SUSPICIOUS_KEYWORDS, SecretPattern

logger = logging.getLogger(__name__)

# Replacing one secret can expose a new match for an earlier pattern (two
# fragments joined by the marker). Passes repeat until nothing changes.
_MAX_PASSES = 5


@dataclass(frozen=True)
class SanitizationResult:
    content: str
    redacted_count: int
    matched_pattern_names: tuple[str, ...]


@dataclass(frozen=True)
class PayloadPreview:
    """Per-file summary shown in dry-run mode."""

    path: str
    chars: int
    estimated_tokens: int
    redacted_count: int
    suspicious_keywords: tuple[str, ...]


class SecretRedactor:
    def __init__(self, patterns: tuple[SecretPattern, ...] = SECRET_PATTERNS, marker: str = REDACTION_MARKER):
        self.patterns = patterns
        self.marker = marker

    def sanitize(self, content: str) -> SanitizationResult:
        """Replace every catalogued secret in content with the redaction marker."""
        count = 0
        matched: list[str] = []
        for _ in range(_MAX_PASSES):
            changed = False
            for pattern in self.patterns:
                content, n = pattern.regex.subn(self.marker, content)
                if n:
                    count += n
                    changed = True
                    if pattern.name not in matched:
                        matched.append(pattern.name)
            if not changed:
                break
        return SanitizationResult(content=content, redacted_count=count, matched_pattern_names=tuple(matched))

    def sanitize_files(self, files) -> tuple[list[SanitizedFile], list[RedactionReport]]:
        """Sanitize each ReviewInputFile patch; report only files with redactions."""
        sanitized: list[SanitizedFile] = []
        reports: list[RedactionReport] = []
        for f in files:
            result = self.sanitize(f.patch)
            sanitized.append(SanitizedFile(path=f.path, content=result.content))
            if result.redacted_count:
                reports.append(
                    RedactionReport(
                        path=f.path,
                        redacted_count=result.redacted_count,
                        matched_pattern_names=result.matched_pattern_names,
                    )
                )
        if reports:
            total = sum(r.redacted_count for r in reports)
            logger.warning(
                "Redacted %d potential secret(s) in %d file(s): %s",
                total,
                len(reports),
                ", ".join(r.path for r in reports),
            )
        return sanitized, reports


def detect_suspicious_keywords(content: str) -> tuple[str, ...]:
    lowered = content.lower()
    return tuple(keyword for keyword in SUSPICIOUS_KEYWORDS if keyword in lowered)


def build_payload_preview(
    files: list[SanitizedFile] | tuple[SanitizedFile, ...],
    reports: list[RedactionReport],
) -> list[PayloadPreview]:
    counts = {r.path: r.redacted_count for r in reports}
    return [
        PayloadPreview(
            path=f.path,
            chars=len(f.content),
            estimated_tokens=estimate_tokens(f.content),
            redacted_count=counts.get(f.path, 0),
            suspicious_keywords=detect_suspicious_keywords(f.content),
        )
        for f in files
    ]
