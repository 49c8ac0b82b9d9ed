"""Gemini ``generateContent`` adapter."""

from __future__ import annotations

from typing import Any

import httpx

from page_insight.core.types import PromptPair
from page_insight.pipeline.adapters.base import HTTPProviderAdapter

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAdapter(HTTPProviderAdapter):
    """Single-attempt adapter for the Gemini REST API.

    The system message and the instruction travel as one text part,
    separated by a blank line.
    """

    name = "gemini"
    display_name = "Gemini"

    def __init__(
        self,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with optional model, base URL and test transport."""
        super().__init__(model=model, base_url=base_url, transport=transport)

    def _build_request(
        self, prompt: PromptPair, api_key: str
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {
            "contents": [
                {"parts": [{"text": f"{prompt.system}\n\n{prompt.instruction}"}]}
            ]
        }
        return url, {"key": api_key}, {"Content-Type": "application/json"}, body

    def _extract_text(self, payload: Any) -> str:
        candidates = payload.get("candidates") if isinstance(payload, dict) else None
        if not isinstance(candidates, list) or not candidates:
            raise self._error("Gemini returned no candidates")
        text = None
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            text = parts[0].get("text")
        if not isinstance(text, str) or not text:
            raise self._error("Gemini returned empty response")
        return text
