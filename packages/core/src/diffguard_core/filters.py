"""Path-based eligibility checks run before any diff is read.

Checks per path, first match wins:
  1. ignore rules (.gitignore, .diffguardignore, config ``exclude``, vendored dirs)
  2. sensitive-file blocklist (env files, keys, lockfiles, credentials, ...)
  3. extension allowlist

The blocklist is checked before the allowlist so that a sensitive file which
also has an unknown extension (``a.env``) is reported as blocked.
"""

from __future__ import annotations

import fnmatch
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from diffguard_core.models import SkippedFile
from diffguard_core.utils.code import ALWAYS_IGNORED_DIRS, BLOCKED_FILE_PATTERNS, is_code_file

logger = logging.getLogger(__name__)

IGNORE_FILES = (".gitignore", ".diffguardignore")

REASON_IGNORED = "ignored"
REASON_BLOCKED = "blocked (sensitive file)"
REASON_EXTENSION = "extension not in allowlist"


@dataclass(frozen=True)
class FilterResult:
    accepted: tuple[str, ...]
    rejected: tuple[SkippedFile, ...]
    by_reason: dict[str, int] = field(default_factory=dict)


def normalize_path(path: str) -> str:
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def parse_ignore_lines(text: str) -> list[str]:
    """Return the usable patterns of an ignore file, skipping blanks and comments."""
    patterns = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def matches_ignore_pattern(path: str, pattern: str) -> bool:
    """Return True if path matches one gitignore-style pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.log"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    - A leading "/" anchors the pattern to the repository root
    """
    if pattern.startswith("/"):
        anchored = pattern.lstrip("/")
        dir_prefix = anchored.rstrip("/") + "/"
        return fnmatch.fnmatch(path, anchored) or path.startswith(dir_prefix)

    dir_only = pattern.endswith("/")
    bare = pattern.rstrip("/")
    if not dir_only:
        if fnmatch.fnmatch(path, bare):
            return True
        # Basename match: "*.lock" matches "path/to/yarn.lock"
        if fnmatch.fnmatch(path.rsplit("/", 1)[-1], bare):
            return True
    # Directory prefix: "migrations" or "migrations/" matches "app/migrations/0001.py"
    prefix = bare + "/"
    if path.startswith(prefix) or ("/" + prefix) in path:
        return True
    if "/" not in bare:
        return any(fnmatch.fnmatch(segment, bare) for segment in path.split("/")[:-1])
    return False


def is_blocked_file(path: str, extra_patterns: tuple[str, ...] = ()) -> bool:
    base = path.rsplit("/", 1)[-1].lower()
    return any(fnmatch.fnmatchcase(base, pattern.lower()) for pattern in (*BLOCKED_FILE_PATTERNS, *extra_patterns))


class FileFilter:
    """Partition candidate paths into accepted and rejected sets.

    Never opens the candidate files themselves; only ignore files are read,
    once, when the filter is built with :meth:`from_repo`.
    """

    def __init__(
        self,
        ignore_patterns: list[str] | None = None,
        extra_extensions: tuple[str, ...] | list[str] = (),
        extra_blocked_patterns: tuple[str, ...] | list[str] = (),
    ):
        self.ignore_patterns = list(ignore_patterns or [])
        self.extra_extensions = tuple(extra_extensions)
        self.extra_blocked_patterns = tuple(extra_blocked_patterns)

    @classmethod
    def from_repo(cls, root: str | Path = ".", config: dict | None = None) -> FileFilter:
        config = config or {}
        patterns: list[str] = []
        for name in IGNORE_FILES:
            ignore_path = Path(root) / name
            if not ignore_path.is_file():
                continue
            try:
                patterns.extend(parse_ignore_lines(ignore_path.read_text(encoding="utf-8", errors="replace")))
            except OSError as e:
                logger.warning("Could not read %s: %s", ignore_path, e)
        patterns.extend(config.get("exclude", []))
        return cls(
            ignore_patterns=patterns,
            extra_extensions=config.get("extra_extensions", ()),
            extra_blocked_patterns=config.get("extra_blocked_patterns", ()),
        )

    def is_ignored(self, path: str) -> bool:
        segments = path.split("/")[:-1]
        if any(segment in ALWAYS_IGNORED_DIRS for segment in segments):
            return True
        ignored = False
        # Last matching rule wins so that "!keep.py" can re-include a path.
        for pattern in self.ignore_patterns:
            if pattern.startswith("!"):
                if ignored and matches_ignore_pattern(path, pattern[1:]):
                    ignored = False
            elif not ignored and matches_ignore_pattern(path, pattern):
                ignored = True
        return ignored

    def classify(self, path: str) -> str | None:
        """Return the rejection reason for path, or None if it is eligible."""
        if self.is_ignored(path):
            return REASON_IGNORED
        if is_blocked_file(path, self.extra_blocked_patterns):
            return REASON_BLOCKED
        if not is_code_file(path, self.extra_extensions):
            return REASON_EXTENSION
        return None

    def filter(self, paths) -> FilterResult:
        accepted: list[str] = []
        rejected: list[SkippedFile] = []
        for path in sorted({normalize_path(p) for p in paths if p and p.strip()}):
            reason = self.classify(path)
            if reason is None:
                accepted.append(path)
            else:
                logger.debug("Rejected %s: %s", path, reason)
                rejected.append(SkippedFile(path=path, reason=reason))
        by_reason = dict(Counter(r.reason for r in rejected))
        return FilterResult(accepted=tuple(accepted), rejected=tuple(rejected), by_reason=by_reason)
