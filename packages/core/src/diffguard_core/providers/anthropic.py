from __future__ import annotations

from diffguard_core.errors import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderTimeoutError,
)
from diffguard_core.providers.base import BaseProvider


class AnthropicProvider(BaseProvider):
    NAME = "anthropic"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str | None, model: str | None = None, timeout: float = 30.0):
        super().__init__(api_key, model, timeout)
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'diffguard[anthropic]'"
            )
        # SDK-level retries are disabled; the orchestrator owns the retry policy.
        self.client = AsyncAnthropic(api_key=api_key, max_retries=0)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        import anthropic
        from anthropic.types import TextBlock

        try:
            response = await self.client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as exc:
            raise ProviderAuthError(str(exc)) from exc
        except anthropic.RateLimitError as exc:
            raise ProviderAPIError(str(exc), status_code=429) from exc
        except anthropic.APIStatusError as exc:
            raise ProviderAPIError(str(exc), status_code=exc.status_code) from exc
        except anthropic.APITimeoutError as exc:
            raise ProviderTimeoutError(str(exc)) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderConnectionError(str(exc)) from exc

        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
