"""Configuration data types.

Configuration is resolved once from every source into a ``ResolvedConfig``
(values plus where each came from), then frozen into a ``FrozenConfig`` that
the executor and front door read.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing."""

    api_key: str | None
    provider: str
    timeout_ms: int
    retries: int
    gemini_model: str
    openai_model: str
    gemini_base_url: str
    openai_base_url: str
    daily_limit: int
    max_chars: int

    # Where each field value came from
    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        values = ", ".join(
            f"{name}={getattr(self, name)!r}"
            for name in self._fields
            if name not in ("api_key", "origin")
        )
        return (
            f"ResolvedConfig(api_key={api_key_display!r}, {values}, "
            f"origin={dict(self.origin)!r})"
        )

    def __repr__(self) -> str:
        """Repr with redacted API key for safe debugging."""
        return self.__str__()

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration, dropping audit metadata."""
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with known fields overridden and marked programmatic."""
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in self._fields and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Return one ``field: origin:value`` line per field, secrets redacted."""
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field == "api_key":
                display = f"{origin}:None" if value is None else f"{origin}:<redacted>"
            elif origin == "env":
                display = f"env:PAGE_INSIGHT_{field.upper()}={value}"
            else:
                display = f"{origin}:{value}"
            lines.append(f"{field}: {display}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class FrozenConfig:
    """Immutable configuration read by the executor and the front door."""

    api_key: str | None
    provider: str
    timeout_ms: int
    retries: int
    gemini_model: str
    openai_model: str
    gemini_base_url: str
    openai_base_url: str
    daily_limit: int
    max_chars: int

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"FrozenConfig(api_key={api_key_display!r}, provider={self.provider!r}, "
            f"timeout_ms={self.timeout_ms!r}, retries={self.retries!r}, "
            f"gemini_model={self.gemini_model!r}, openai_model={self.openai_model!r}, "
            f"daily_limit={self.daily_limit!r}, max_chars={self.max_chars!r})"
        )

    def __repr__(self) -> str:
        """Representation with redacted API key for safe debugging."""
        return self.__str__()
