"""Token budget estimation against the provider's context window."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PROVIDER_TOKEN_LIMITS = {
    "gemini": 1_000_000,
    "openai": 128_000,
    "anthropic": 200_000,
}
DEFAULT_TOKEN_LIMIT = 100_000
WARN_RATIO = 0.8

TOKEN_LIMIT_ENV = "DIFFGUARD_TOKEN_LIMIT"

PROCEED = "proceed"
WARN = "warn"
EXCEEDED = "exceeded"


@dataclass(frozen=True)
class BudgetEstimate:
    total: int
    limit: int
    system_prompt_tokens: int
    file_tokens: int
    per_file: dict[str, int] = field(default_factory=dict)

    @property
    def ratio(self) -> float:
        return self.total / self.limit if self.limit else float("inf")

    @property
    def outcome(self) -> str:
        if self.total >= self.limit:
            return EXCEEDED
        if self.ratio >= WARN_RATIO:
            return WARN
        return PROCEED


def estimate_tokens(text: str) -> int:
    """Rough token count using the ~4 characters per token heuristic."""
    return math.ceil(len(text) / 4)


def resolve_token_limit(provider: str, override: int | None = None) -> int:
    """DIFFGUARD_TOKEN_LIMIT, then an explicit override, then the provider default."""
    raw = os.environ.get(TOKEN_LIMIT_ENV)
    if raw:
        try:
            from_env = int(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r", TOKEN_LIMIT_ENV, raw)
        else:
            if from_env > 0:
                return from_env
    if override is not None and override > 0:
        return override
    return PROVIDER_TOKEN_LIMITS.get(provider, DEFAULT_TOKEN_LIMIT)


def check_budget(files, system_prompt: str, provider: str, override: int | None = None) -> BudgetEstimate:
    """Estimate system prompt + every sanitized payload against the provider limit."""
    per_file = {f.path: estimate_tokens(f.content) for f in files}
    prompt_tokens = estimate_tokens(system_prompt)
    file_tokens = sum(per_file.values())
    estimate = BudgetEstimate(
        total=file_tokens + prompt_tokens,
        limit=resolve_token_limit(provider, override),
        system_prompt_tokens=prompt_tokens,
        file_tokens=file_tokens,
        per_file=per_file,
    )
    if estimate.outcome == WARN:
        logger.warning(
            "Estimated payload uses %.0f%% of the %s token limit (%d / %d).",
            estimate.ratio * 100,
            provider,
            estimate.total,
            estimate.limit,
        )
    return estimate
