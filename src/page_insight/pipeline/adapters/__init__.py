"""Provider adapters: one HTTP attempt per call, no retries."""

from page_insight.pipeline.adapters.base import HTTPProviderAdapter, ProviderAdapter
from page_insight.pipeline.adapters.gemini import GeminiAdapter
from page_insight.pipeline.adapters.openai import OpenAIAdapter
from page_insight.pipeline.adapters.registry import default_providers, resolve_provider

__all__ = [
    "GeminiAdapter",
    "HTTPProviderAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "default_providers",
    "resolve_provider",
]
