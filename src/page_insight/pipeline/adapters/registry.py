"""Explicit provider registry.

Runners and the executor receive a plain ``name -> adapter`` mapping instead
of looking adapters up in module globals, so tests inject fakes by passing a
different mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from page_insight.core.exceptions import ValidationError
from page_insight.pipeline.adapters.base import ProviderAdapter
from page_insight.pipeline.adapters.gemini import GeminiAdapter
from page_insight.pipeline.adapters.openai import OpenAIAdapter

if TYPE_CHECKING:
    import httpx

    from page_insight.config import FrozenConfig


def default_providers(
    config: FrozenConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, ProviderAdapter]:
    """Build the standard ``{"gemini": ..., "openai": ...}`` mapping.

    Models and base URLs come from ``config`` when given, otherwise the
    adapter defaults apply.
    """
    if config is None:
        return {
            "gemini": GeminiAdapter(transport=transport),
            "openai": OpenAIAdapter(transport=transport),
        }
    return {
        "gemini": GeminiAdapter(
            model=config.gemini_model,
            base_url=config.gemini_base_url,
            transport=transport,
        ),
        "openai": OpenAIAdapter(
            model=config.openai_model,
            base_url=config.openai_base_url,
            transport=transport,
        ),
    }


def resolve_provider(
    name: str, providers: Mapping[str, ProviderAdapter]
) -> ProviderAdapter:
    """Return the adapter registered under ``name``.

    Raises:
        ValidationError: If no adapter is registered under that name.
    """
    try:
        return providers[name]
    except (KeyError, TypeError):
        raise ValidationError(f"Unknown provider: {name}") from None
