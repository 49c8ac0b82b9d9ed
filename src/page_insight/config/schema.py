"""Configuration schema and validation using Pydantic.

Defines the settings that validate and coerce configuration values from every
source (environment, files, programmatic) into typed values with defaults.
"""

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from page_insight.pipeline.adapters.gemini import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_GEMINI_MODEL,
)
from page_insight.pipeline.adapters.openai import (
    DEFAULT_OPENAI_BASE_URL,
    DEFAULT_OPENAI_MODEL,
)

CONFIG_FIELDS: tuple[str, ...] = (
    "api_key",
    "provider",
    "timeout_ms",
    "retries",
    "gemini_model",
    "openai_model",
    "gemini_base_url",
    "openai_base_url",
    "daily_limit",
    "max_chars",
)


class PageInsightSettings(BaseSettings):
    """Pydantic settings schema for page-insight.

    Reads ``PAGE_INSIGHT_*`` environment variables when instantiated without
    arguments; the resolver passes merged values explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGE_INSIGHT_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        description="API key for the selected provider",
    )

    provider: Literal["gemini", "openai"] = Field(
        default="gemini",
        description="LLM provider used to run the pipeline",
    )

    timeout_ms: int = Field(
        default=30_000,
        description="Deadline for a single provider attempt, in milliseconds",
        ge=1,
    )

    retries: int = Field(
        default=2,
        description="Additional attempts after a failed one",
        ge=0,
    )

    gemini_model: str = Field(default=DEFAULT_GEMINI_MODEL, min_length=1)
    openai_model: str = Field(default=DEFAULT_OPENAI_MODEL, min_length=1)
    gemini_base_url: str = Field(default=DEFAULT_GEMINI_BASE_URL, min_length=1)
    openai_base_url: str = Field(default=DEFAULT_OPENAI_BASE_URL, min_length=1)

    daily_limit: int = Field(
        default=20,
        description="Successful summaries allowed per day when usage is tracked",
        ge=0,
    )

    max_chars: int = Field(
        default=10_000,
        description="Page text is truncated to this many characters",
        ge=1,
    )

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Any:
        """Accept provider names case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_api_key_is_none(cls, v: Any) -> Any:
        """Treat an empty or whitespace-only key as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary keyed by field name."""
        return {name: getattr(self, name) for name in CONFIG_FIELDS}
