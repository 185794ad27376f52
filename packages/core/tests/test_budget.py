"""Tests for token budget estimation."""

import pytest

from diffguard_core.budget import (
    DEFAULT_TOKEN_LIMIT,
    EXCEEDED,
    PROCEED,
    PROVIDER_TOKEN_LIMITS,
    WARN,
    check_budget,
    estimate_tokens,
    resolve_token_limit,
)
from diffguard_core.models import SanitizedFile


@pytest.fixture(autouse=True)
def _no_env_limit(monkeypatch):
    monkeypatch.delenv("DIFFGUARD_TOKEN_LIMIT", raising=False)


def _files(*sizes: int) -> list[SanitizedFile]:
    return [SanitizedFile(path=f"f{i}.py", content="x" * size) for i, size in enumerate(sizes)]


class TestEstimateTokens:
    def test_four_chars_per_token_rounded_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2


class TestResolveTokenLimit:
    def test_provider_defaults_are_distinct(self):
        limits = {resolve_token_limit(p) for p in PROVIDER_TOKEN_LIMITS}
        assert len(limits) == len(PROVIDER_TOKEN_LIMITS)

    def test_unknown_provider_uses_default(self):
        assert resolve_token_limit("local") == DEFAULT_TOKEN_LIMIT

    def test_override_beats_provider_default(self):
        assert resolve_token_limit("openai", 5000) == 5000

    def test_environment_beats_override(self, monkeypatch):
        monkeypatch.setenv("DIFFGUARD_TOKEN_LIMIT", "777")
        assert resolve_token_limit("openai", 5000) == 777

    def test_non_numeric_environment_ignored(self, monkeypatch):
        monkeypatch.setenv("DIFFGUARD_TOKEN_LIMIT", "lots")
        assert resolve_token_limit("openai") == PROVIDER_TOKEN_LIMITS["openai"]


class TestCheckBudget:
    def test_below_warn_ratio_proceeds(self):
        estimate = check_budget(_files(40), "", "openai", override=100)
        assert estimate.total == 10
        assert estimate.outcome == PROCEED

    def test_between_80_and_100_percent_warns(self, caplog):
        estimate = check_budget(_files(320), "", "openai", override=100)
        assert estimate.outcome == WARN
        assert "token limit" in caplog.text

    def test_at_limit_is_exceeded(self):
        estimate = check_budget(_files(400), "", "openai", override=100)
        assert estimate.total == 100
        assert estimate.outcome == EXCEEDED

    def test_system_prompt_counted_once(self):
        estimate = check_budget(_files(40, 40, 40), "p" * 40, "anthropic", override=1000)
        assert estimate.system_prompt_tokens == 10
        assert estimate.file_tokens == 30
        assert estimate.total == 40
        assert estimate.per_file == {"f0.py": 10, "f1.py": 10, "f2.py": 10}
