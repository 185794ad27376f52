from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from diffguard_core.errors import ConfigurationError

KNOWN_PROVIDERS = ("anthropic", "openai", "gemini")
KNOWN_STORES = ("directory", "sqlite", "none")

DEFAULT_CONFIG_PATH = ".diffguard.yml"

DEFAULT_CONFIG: dict = {
    "provider": "anthropic",
    "model": None,  # None = provider default
    "tech_stack": None,
    "rules": [],
    "guidelines": None,  # optional path to a Markdown file appended to the system prompt
    "max_concurrency": 5,
    "cache_enabled": True,
    "store": "directory",
    "store_path": None,  # None = backend default (.diffguard-cache/ or .diffguard-cache.db)
    "target_branch": "origin/main",
    "commit_format": None,  # None = Conventional Commits
    "exclude": [],  # extra ignore globs, same syntax as .diffguardignore
    "extra_extensions": [],
    "extra_blocked_patterns": [],
    "timeout": 30,
    "ai": {
        "enabled": None,  # None = policy default (off for staged targets)
        "max_files": 15,
        "max_diff_lines": 1200,
        "max_chars_per_file": 12000,
        "prompt_version": None,
        "fallback_providers": [],
        "token_limit": None,
        "max_attempts": 3,
    },
}

_TOP_LEVEL_INTS = ("max_concurrency", "timeout")
_AI_INTS = ("max_files", "max_diff_lines", "max_chars_per_file", "max_attempts")
_STRING_LISTS = ("rules", "exclude", "extra_extensions", "extra_blocked_patterns")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Guardrails:
    """Hard input limits applied before anything reaches the model."""

    max_files: int = 15
    max_diff_lines: int = 1200
    max_chars_per_file: int = 12000
    max_concurrency: int = 5


def load_config(config_path: str = DEFAULT_CONFIG_PATH, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .diffguard.yml in the current directory
      3. CLI argument overrides (None values are ignored)
      4. DIFFGUARD_PROVIDER / DIFFGUARD_MODEL environment variables

    Raises ConfigurationError listing every invalid field at once.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a YAML mapping at the top level.")
        file_ai = file_config.pop("ai", None) or {}
        if not isinstance(file_ai, dict):
            raise ConfigurationError(f"Invalid configuration in {config_path}:\n  • ai: must be a mapping")
        config.update(file_config)
        config["ai"].update(file_ai)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is None:
                continue
            if key in config["ai"] and key not in config:
                config["ai"][key] = value
            else:
                config[key] = value

    if os.environ.get("DIFFGUARD_PROVIDER"):
        config["provider"] = os.environ["DIFFGUARD_PROVIDER"].strip().lower()
    if os.environ.get("DIFFGUARD_MODEL"):
        config["model"] = os.environ["DIFFGUARD_MODEL"].strip()

    _validate(config, config_path)

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["gemini_api_key"] = os.environ.get("GEMINI_API_KEY")

    return config


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate(config: dict, source: str) -> None:
    problems: list[str] = []

    if config.get("provider") not in KNOWN_PROVIDERS:
        problems.append(f"provider: must be one of {', '.join(KNOWN_PROVIDERS)} (got {config.get('provider')!r})")
    if config.get("store") not in KNOWN_STORES:
        problems.append(f"store: must be one of {', '.join(KNOWN_STORES)} (got {config.get('store')!r})")

    for key in _TOP_LEVEL_INTS:
        if not _is_positive_int(config.get(key)):
            problems.append(f"{key}: must be a positive integer (got {config.get(key)!r})")

    ai = config["ai"]
    for key in _AI_INTS:
        if not _is_positive_int(ai.get(key)):
            problems.append(f"ai.{key}: must be a positive integer (got {ai.get(key)!r})")
    if ai.get("token_limit") is not None and not _is_positive_int(ai["token_limit"]):
        problems.append(f"ai.token_limit: must be a positive integer (got {ai['token_limit']!r})")
    if ai.get("enabled") is not None and not isinstance(ai["enabled"], bool):
        problems.append(f"ai.enabled: must be true or false (got {ai['enabled']!r})")

    # YAML reads `prompt_version: 2` as an int; keys are built from text.
    version = ai.get("prompt_version")
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        ai["prompt_version"] = str(version)
    elif version is not None and not isinstance(version, str):
        problems.append(f"ai.prompt_version: must be a string or number (got {version!r})")

    fallbacks = ai.get("fallback_providers")
    if not isinstance(fallbacks, list) or any(name not in KNOWN_PROVIDERS for name in fallbacks):
        problems.append(f"ai.fallback_providers: must be a list drawn from {', '.join(KNOWN_PROVIDERS)}")

    for key in _STRING_LISTS:
        value = config.get(key)
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            problems.append(f"{key}: must be a list of strings")

    commit_format = config.get("commit_format")
    if commit_format is not None and not isinstance(commit_format, str):
        problems.append(f"commit_format: must be a string (got {commit_format!r})")

    if not isinstance(config.get("cache_enabled"), bool):
        problems.append(f"cache_enabled: must be true or false (got {config.get('cache_enabled')!r})")

    if problems:
        details = "\n".join(f"  • {p}" for p in problems)
        raise ConfigurationError(f"Invalid configuration in {source}:\n{details}")


def get_guardrails(config: dict) -> Guardrails:
    """Extract guardrail values, flooring each at 1."""
    ai = config.get("ai", {})
    return Guardrails(
        max_files=max(1, int(ai.get("max_files", 15))),
        max_diff_lines=max(1, int(ai.get("max_diff_lines", 1200))),
        max_chars_per_file=max(1, int(ai.get("max_chars_per_file", 12000))),
        max_concurrency=max(1, int(config.get("max_concurrency", 5))),
    )


def parse_bool_env(value: str | None) -> bool | None:
    """Interpret an on/off environment value; None when unset or unrecognised."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def resolve_ai_enabled(config: dict, target_kind: str, flag: bool | None = None) -> bool:
    """Decide whether the LLM is called at all for this run.

    Precedence: --ai/--no-ai flag, DIFFGUARD_AI, ai.enabled, then the policy
    default, which is off for staged targets (pre-commit hooks) and on otherwise.
    """
    if flag is not None:
        return flag
    from_env = parse_bool_env(os.environ.get("DIFFGUARD_AI"))
    if from_env is not None:
        return from_env
    configured = config.get("ai", {}).get("enabled")
    if configured is not None:
        return bool(configured)
    return target_kind != "staged"


def load_guidelines(config: dict) -> str | None:
    """
    Load optional review guidelines.

    If ``guidelines`` is set in config, loads from that path (relative to cwd).
    Returns None when no guidelines are configured.
    """
    custom_path = config.get("guidelines")
    if not custom_path:
        return None
    p = Path(custom_path)
    if not p.exists():
        raise ConfigurationError(f"Guidelines file not found: {custom_path}")
    return p.read_text()
