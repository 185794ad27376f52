"""GitHub token resolution for ``review --publish``.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable (injected by GitHub Actions)
  2. ``gh auth token`` (a local GitHub CLI session)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available.

    Never raises; the caller decides whether a missing token is fatal.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        logger.debug("Using GitHub token from GITHUB_TOKEN.")
        return token

    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh CLI unavailable for token lookup: %s", e)
        return None

    gh_token = result.stdout.strip() if result.returncode == 0 else ""
    if gh_token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return gh_token
    return None
