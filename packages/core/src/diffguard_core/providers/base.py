"""Base provider implementing the Template Method pattern.

All providers expose the same capability to the orchestrator:
    generate(system_prompt, user_prompt) → _call_api()   ← only this differs per provider
                                         → time-boxed with asyncio.wait_for

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response, translating
    SDK exceptions into diffguard_core.errors

Retry, fallback and parsing live outside the provider (orchestrator and
normalizer) so a provider stays a single-attempt transport.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from diffguard_core.errors import ProviderTimeoutError

logger = logging.getLogger(__name__)

# Shared defaults; subclasses may override as class attributes if needed.
_MAX_TOKENS = 4096
_DEFAULT_TIMEOUT = 30.0


class BaseProvider(ABC):
    NAME: str = "base"
    DEFAULT_MODEL: str = ""
    TEMPERATURE: float = 0.2
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, api_key: str | None, model: str | None = None, timeout: float = _DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.NAME

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Make one time-boxed call and return the raw text reply.

        A call that exceeds ``timeout`` is cancelled and surfaces as a
        retryable ProviderTimeoutError; sibling calls are unaffected.
        """
        try:
            return await asyncio.wait_for(self._call_api(system_prompt, user_prompt), timeout=self.timeout)
        except TimeoutError as e:
            raise ProviderTimeoutError(f"{self.NAME} call timed out after {self.timeout:g}s") from e

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise a
        ProviderError subclass on failure.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"
