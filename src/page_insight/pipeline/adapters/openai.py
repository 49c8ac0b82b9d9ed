"""OpenAI chat completions adapter."""

from __future__ import annotations

from typing import Any

import httpx

from page_insight.core.types import PromptPair
from page_insight.pipeline.adapters.base import HTTPProviderAdapter

DEFAULT_OPENAI_MODEL = "gpt-4"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIAdapter(HTTPProviderAdapter):
    """Single-attempt adapter for ``/chat/completions``.

    The system message and the instruction are sent as separate ``system``
    and ``user`` messages.
    """

    name = "openai"
    display_name = "OpenAI"

    def __init__(
        self,
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with optional model, base URL and test transport."""
        super().__init__(model=model, base_url=base_url, transport=transport)

    def _build_request(
        self, prompt: PromptPair, api_key: str
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.instruction},
            ],
        }
        return f"{self.base_url}/chat/completions", {}, headers, body

    def _status_message(self, response: httpx.Response) -> str:
        message = f"OpenAI API error: {response.status_code} {response.reason_phrase}"
        if response.text:
            message = f"{message} - {response.text}"
        return message

    def _extract_text(self, payload: Any) -> str:
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise self._error("OpenAI returned no choices")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        text = message.get("content") if isinstance(message, dict) else None
        if not isinstance(text, str) or not text:
            raise self._error("OpenAI returned empty response")
        return text
