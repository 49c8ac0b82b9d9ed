"""Provider adapter protocol and the shared HTTP plumbing.

An adapter performs exactly one attempt against a provider: it sends a prompt
pair and returns the generated text, or raises ``TransportError``. Deadlines
and retries belong to the stage executor, so the HTTP client timeout is
disabled here.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from page_insight.core.exceptions import TransportError
from page_insight.core.types import PromptPair

log = logging.getLogger(__name__)


@runtime_checkable
class ProviderAdapter(Protocol):
    """Send one prompt pair to a provider and return the generated text."""

    name: str

    async def send_prompt(self, prompt: PromptPair, api_key: str) -> str:
        """Perform a single attempt.

        Raises:
            TransportError: Non-2xx status, malformed body or empty text.
        """
        ...


class HTTPProviderAdapter:
    """Base for JSON-over-HTTP providers.

    Subclasses describe the request (``_build_request``) and how to pull the
    text out of a decoded body (``_extract_text``). Instances hold only
    configuration; every call opens its own ``httpx.AsyncClient`` so one
    adapter can serve concurrent invocations.
    """

    name: str = "http"
    display_name: str = "HTTP"

    def __init__(
        self,
        *,
        model: str,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with model, base URL and an optional test transport."""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r}, base_url={self.base_url!r})"

    def _build_request(
        self, prompt: PromptPair, api_key: str
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        """Return ``(url, params, headers, json_body)``."""
        raise NotImplementedError

    def _extract_text(self, payload: Any) -> str:
        raise NotImplementedError

    def _status_message(self, response: httpx.Response) -> str:
        return (
            f"{self.display_name} API error: {response.status_code} - {response.text}"
        )

    def _error(self, message: str, **details: Any) -> TransportError:
        return TransportError(message, provider=self.name, **details)

    async def send_prompt(self, prompt: PromptPair, api_key: str) -> str:
        """POST the prompt and return the generated text."""
        url, params, headers, body = self._build_request(prompt, api_key)
        try:
            async with httpx.AsyncClient(
                timeout=None, transport=self._transport
            ) as client:
                response = await client.post(
                    url, params=params, headers=headers, json=body
                )
        except httpx.HTTPError as e:
            raise self._error(
                f"{self.display_name} request failed: {type(e).__name__}: {e}"
            ) from e

        log.debug(
            "%s responded %s for model %s", self.name, response.status_code, self.model
        )
        if not response.is_success:
            raise self._error(
                self._status_message(response),
                status_code=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise self._error(
                f"{self.display_name} returned invalid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        return self._extract_text(payload)
