from __future__ import annotations

import logging
from typing import Any, List, Optional

import openai

from .base import ProviderConfigError, ProviderError, TextProvider

logger = logging.getLogger(__name__)

# Gemini speaks the OpenAI chat-completions protocol on this endpoint
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

RATE_LIMIT_HELP = (
    "API rate limit exceeded. Please wait a moment and try again.\n"
    "  You can also try using a different API key or check your quota at:\n"
    "  https://aistudio.google.com/apikey"
)


def _friendly_error(exc: Exception, action: str) -> ProviderError:
    text = str(exc)
    low = text.lower()
    if isinstance(exc, openai.AuthenticationError) or "api key" in low:
        return ProviderError("Invalid API key. Please check your Gemini API key.")
    if isinstance(exc, openai.RateLimitError) or "429" in text or "resource exhausted" in low:
        return ProviderError(RATE_LIMIT_HELP)
    if isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError)):
        return ProviderError("Network error. Please check your internet connection and try again.")
    return ProviderError(f"Failed to {action}: {text}")


class GeminiProvider(TextProvider):
    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        *,
        base_url: str = GEMINI_OPENAI_BASE_URL,
        client: Any = None,
    ) -> None:
        if not api_key and client is None:
            raise ProviderConfigError("Gemini API key is not configured")
        self.model = model
        self._client = client or openai.OpenAI(api_key=api_key, base_url=base_url)

    def complete(self, system_prompt: str, content: str, action: str = "generate a response") -> str:
        logger.debug("requesting %s from %s", action, self.model)
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": content},
                ],
            )
        except openai.OpenAIError as e:
            raise _friendly_error(e, action) from e
        return (resp.choices[0].message.content or "").strip()

    def list_models(self) -> List[str]:
        try:
            page = self._client.models.list()
        except openai.OpenAIError as e:
            raise _friendly_error(e, "fetch available models") from e
        names = []
        for m in page:
            name = str(getattr(m, "id", "") or "")
            if name.startswith("models/"):
                name = name[len("models/"):]
            if name:
                names.append(name)
        return names
