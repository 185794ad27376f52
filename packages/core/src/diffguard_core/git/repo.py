"""Thin wrapper over the git binary.

Every failure (git missing, bad revision, not a repository) is logged and
degrades to an empty result; callers never see an exception from here.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from diffguard_core.models import CommitInfo, ReviewTarget

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 60
_NAME_FILTER = "--diff-filter=ACMR"
_MAX_COMMITS = 50
# Unit and record separators keep multi-line commit bodies intact.
_COMMIT_FORMAT = "--format=%H%x1f%B%x1e"


class GitRepository:
    def __init__(self, root: str | Path = "."):
        self.root = str(root)

    def _run(self, args: list[str], ok_codes: tuple[int, ...] = (0,)) -> str | None:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.root,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=_GIT_TIMEOUT,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("git %s failed: %s", " ".join(args[:2]), e)
            return None
        if result.returncode not in ok_codes:
            logger.debug("git %s exited %d: %s", " ".join(args), result.returncode, result.stderr.strip())
            return None
        return result.stdout

    def is_git_repository(self) -> bool:
        out = self._run(["rev-parse", "--is-inside-work-tree"])
        return out is not None and out.strip() == "true"

    def current_branch(self) -> str | None:
        out = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        return out.strip() if out else None

    def list_changed_paths(self, target: ReviewTarget) -> list[str]:
        """Return repository-relative paths changed by target (added, copied, modified, renamed)."""
        if target.kind == "files":
            return list(dict.fromkeys(target.files))

        if target.kind == "staged":
            out = self._run(["diff", "--cached", "--name-only", _NAME_FILTER])
        elif target.kind == "commit":
            out = self._run(["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", _NAME_FILTER, target.commit])
        else:
            out = self._range_command(["diff", "--name-only", _NAME_FILTER], target.range)

        if out is None:
            logger.warning("Could not list changed files for %s.", target.describe())
            return []
        return [line.strip() for line in out.splitlines() if line.strip()]

    def list_commits(self, target: ReviewTarget) -> list[CommitInfo]:
        """Return the commits a commit or range target introduces, newest first.

        Staged and file targets have no commits. Merge commits in a range are left out.
        """
        if target.kind == "commit":
            out = self._run(["log", "-1", _COMMIT_FORMAT, target.commit])
        elif target.kind == "range" and target.range:
            # For log, "A...B" would also list commits only on A.
            out = self._run(
                ["log", "--no-merges", f"-n{_MAX_COMMITS}", _COMMIT_FORMAT, target.range.replace("...", "..")]
            )
        else:
            return []

        if out is None:
            logger.warning("Could not list commits for %s.", target.describe())
            return []
        commits = []
        for record in out.split("\x1e"):
            sha, sep, message = record.strip("\n").partition("\x1f")
            if sep and sha.strip():
                commits.append(CommitInfo(sha=sha.strip(), message=message.strip()))
        return commits

    def get_file_diff(self, target: ReviewTarget, path: str, context_lines: int = 3) -> str:
        """Return the unified diff of one path under target, or "" when unavailable."""
        unified = f"-U{context_lines}"
        if target.kind == "staged":
            out = self._run(["diff", "--cached", unified, "--", path])
        elif target.kind == "commit":
            out = self._run(["show", "--format=", unified, target.commit, "--", path])
        elif target.kind == "range":
            out = self._range_command(["diff", unified], target.range, ["--", path])
        else:
            out = self._run(["diff", unified, "HEAD", "--", path])
            if not out and not self._is_tracked(path):
                # Untracked file: show it as entirely added.
                out = self._run(["diff", "--no-index", unified, "--", "/dev/null", path], ok_codes=(0, 1))
        return out or ""

    def _range_command(self, args: list[str], range_spec: str | None, tail: list[str] | None = None) -> str | None:
        tail = tail or []
        out = self._run([*args, range_spec, *tail])
        if out is None and range_spec and "..." in range_spec:
            # No merge base (shallow clone, unrelated histories): fall back to a direct comparison.
            out = self._run([*args, range_spec.replace("...", ".."), *tail])
        return out

    def _is_tracked(self, path: str) -> bool:
        return self._run(["ls-files", "--error-unmatch", "--", path]) is not None
