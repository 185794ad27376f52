"""Explicit provider construction.

Providers are built once per run and passed to the orchestrator; there is
no module-level client.
"""

from __future__ import annotations

import logging

from diffguard_core.errors import ConfigurationError
from diffguard_core.providers.anthropic import AnthropicProvider
from diffguard_core.providers.base import BaseProvider
from diffguard_core.providers.gemini import GeminiProvider
from diffguard_core.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[BaseProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}

API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def create_provider(name: str, api_key: str | None, model: str | None = None, timeout: float = 30.0) -> BaseProvider:
    try:
        cls = PROVIDER_CLASSES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider: {name!r}. Choose one of: {', '.join(PROVIDER_CLASSES)}."
        ) from None
    return cls(api_key=api_key, model=model, timeout=timeout)


def _api_key(config: dict, name: str) -> str | None:
    return config.get(f"{name}_api_key")


def build_providers(config: dict) -> tuple[BaseProvider, list[BaseProvider]]:
    """Return the primary provider and the ordered, usable fallback providers.

    A missing key or SDK for the primary provider is a configuration error.
    Fallback providers that cannot be used are skipped with a warning.
    """
    name = config["provider"]
    timeout = float(config.get("timeout", 30))
    if not _api_key(config, name):
        raise ConfigurationError(f"{API_KEY_ENV[name]} environment variable is not set.")
    try:
        primary = create_provider(name, _api_key(config, name), config.get("model"), timeout)
    except ImportError as e:
        raise ConfigurationError(str(e)) from e

    fallbacks: list[BaseProvider] = []
    for fallback_name in config.get("ai", {}).get("fallback_providers", []):
        if fallback_name == name or any(p.name == fallback_name for p in fallbacks):
            continue
        if not _api_key(config, fallback_name):
            logger.warning("Skipping fallback provider %s: %s is not set.", fallback_name, API_KEY_ENV[fallback_name])
            continue
        try:
            provider = create_provider(fallback_name, _api_key(config, fallback_name), timeout=timeout)
        except ImportError as e:
            logger.warning("Skipping fallback provider %s: %s", fallback_name, e)
            continue
        fallbacks.append(provider)

    return primary, fallbacks
