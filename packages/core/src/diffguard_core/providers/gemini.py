from __future__ import annotations

from diffguard_core.errors import ProviderAPIError, ProviderAuthError
from diffguard_core.providers.base import BaseProvider

_AUTH_STATUS = {401, 403}


class GeminiProvider(BaseProvider):
    NAME = "gemini"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: str | None, model: str | None = None, timeout: float = 30.0):
        super().__init__(api_key, model, timeout)
        try:
            from google import genai
        except ImportError:
            raise ImportError(
                "The 'google-genai' package is required for this provider. "
                "Install it with: pip install 'diffguard[gemini]'"
            )
        self.client = genai.Client(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        from google.genai import errors, types

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self.TEMPERATURE,
                    max_output_tokens=self.MAX_TOKENS,
                    response_mime_type="application/json",
                ),
            )
        except errors.APIError as exc:
            if exc.code in _AUTH_STATUS:
                raise ProviderAuthError(str(exc)) from exc
            raise ProviderAPIError(str(exc), status_code=exc.code) from exc

        return (response.text or "").strip()
