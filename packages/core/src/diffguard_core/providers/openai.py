from __future__ import annotations

try:
    import openai as _openai
except ImportError:
    _openai = None  # type: ignore[assignment]

from diffguard_core.errors import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderTimeoutError,
)
from diffguard_core.providers.base import BaseProvider


class OpenAIProvider(BaseProvider):
    NAME = "openai"
    DEFAULT_MODEL = "gpt-4o"

    def __init__(self, api_key: str | None, model: str | None = None, timeout: float = 30.0):
        super().__init__(api_key, model, timeout)
        if _openai is None:
            raise ImportError(
                "The 'openai' package is required for this provider. Install it with: pip install 'diffguard[openai]'"
            )
        self.client = _openai.AsyncOpenAI(api_key=api_key, max_retries=0)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except (_openai.AuthenticationError, _openai.PermissionDeniedError) as exc:
            raise ProviderAuthError(str(exc)) from exc
        except _openai.RateLimitError as exc:
            raise ProviderAPIError(str(exc), status_code=429) from exc
        except _openai.APIStatusError as exc:
            raise ProviderAPIError(str(exc), status_code=exc.status_code) from exc
        except _openai.APITimeoutError as exc:
            raise ProviderTimeoutError(str(exc)) from exc
        except _openai.APIConnectionError as exc:
            raise ProviderConnectionError(str(exc)) from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
