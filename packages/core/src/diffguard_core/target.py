"""Map the user's selectors to a single ReviewTarget."""

from __future__ import annotations

from diffguard_core.errors import ConfigurationError
from diffguard_core.models import ReviewTarget

DEFAULT_TARGET_BRANCH = "origin/main"


def resolve_target(
    staged: bool = False,
    commit: str | None = None,
    range_spec: str | None = None,
    files: list[str] | tuple[str, ...] | None = None,
    target_branch: str | None = None,
) -> ReviewTarget:
    """Return the target for this run.

    At most one selector may be active. With none, the current HEAD is
    compared against ``target_branch`` using a three-dot range.
    """
    selectors = [
        staged,
        commit is not None,
        range_spec is not None,
        bool(files),
    ]
    if sum(selectors) > 1:
        raise ConfigurationError("Use only one target selector among --staged, --commit, --range, --files.")

    if staged:
        return ReviewTarget.staged()
    if commit is not None:
        if not commit.strip():
            raise ConfigurationError("--commit requires a non-empty revision.")
        return ReviewTarget.for_commit(commit.strip())
    if range_spec is not None:
        if ".." not in range_spec:
            raise ConfigurationError(f"--range expects BASE..HEAD or BASE...HEAD, got {range_spec!r}.")
        return ReviewTarget.for_range(range_spec.strip())
    if files:
        # Keep first-seen order; duplicates add nothing.
        unique = list(dict.fromkeys(p.strip() for p in files if p.strip()))
        return ReviewTarget.for_files(unique)

    branch = (target_branch or DEFAULT_TARGET_BRANCH).strip()
    return ReviewTarget.for_range(f"{branch}...HEAD")
