"""Diff collection under the file, line and character guardrails."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from diffguard_core.config import Guardrails
from diffguard_core.models import ReviewInputFile, ReviewTarget, SkippedFile
from diffguard_core.utils.diff import is_binary_diff, parse_diff_stats, truncate_patch

logger = logging.getLogger(__name__)

REASON_MAX_FILES = "maxFiles guardrail"
REASON_NO_DIFF = "no diff content"
REASON_BINARY = "binary diff"
REASON_NO_CHANGES = "no changed lines"
REASON_MAX_DIFF_LINES = "maxDiffLines guardrail"


@dataclass(frozen=True)
class DiffCollection:
    files: tuple[ReviewInputFile, ...]
    skipped: tuple[SkippedFile, ...]
    total_changed_lines: int


def collect_review_input(
    paths,
    target: ReviewTarget,
    git,
    guardrails: Guardrails,
    context_lines: int = 3,
) -> DiffCollection:
    """Build one ReviewInputFile per eligible path.

    Paths are processed in sorted order so the same input always keeps and
    drops the same files. A file that would push the changed-line total past
    ``max_diff_lines`` is skipped and evaluation continues with the next one.
    Oversized diffs are truncated, not skipped, and count toward the line
    budget with their full (pre-truncation) stats.
    """
    ordered = sorted(dict.fromkeys(paths))
    max_files = max(1, guardrails.max_files)
    max_diff_lines = max(1, guardrails.max_diff_lines)
    max_chars = max(1, guardrails.max_chars_per_file)

    skipped = [SkippedFile(path=p, reason=REASON_MAX_FILES) for p in ordered[max_files:]]
    if skipped:
        logger.info("maxFiles guardrail: skipping %d of %d file(s).", len(skipped), len(ordered))

    files: list[ReviewInputFile] = []
    total_changed = 0

    for path in ordered[:max_files]:
        patch = git.get_file_diff(target, path, context_lines)
        if not patch.strip():
            skipped.append(SkippedFile(path=path, reason=REASON_NO_DIFF))
            continue
        if is_binary_diff(patch):
            skipped.append(SkippedFile(path=path, reason=REASON_BINARY))
            continue

        additions, deletions = parse_diff_stats(patch)
        changed = additions + deletions
        if changed == 0:
            skipped.append(SkippedFile(path=path, reason=REASON_NO_CHANGES))
            continue
        if total_changed + changed > max_diff_lines:
            logger.info(
                "maxDiffLines guardrail: skipping %s (%d changed line(s), %d/%d used).",
                path,
                changed,
                total_changed,
                max_diff_lines,
            )
            skipped.append(SkippedFile(path=path, reason=REASON_MAX_DIFF_LINES))
            continue

        patch, truncated = truncate_patch(patch, max_chars)
        if truncated:
            logger.debug("Truncated diff for %s to %d characters.", path, max_chars)
        total_changed += changed
        files.append(
            ReviewInputFile(
                path=path,
                patch=patch,
                additions=additions,
                deletions=deletions,
                changed_lines=changed,
                truncated=truncated,
            )
        )

    return DiffCollection(files=tuple(files), skipped=tuple(skipped), total_changed_lines=total_changed)
