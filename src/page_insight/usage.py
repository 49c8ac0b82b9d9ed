"""Persisted reader settings and the daily usage budget.

The pipeline core never reads these; ``page_insight.frontdoor`` consults the
store for saved preferences and gates each run through ``UsageGate``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, replace
import json
import logging
from pathlib import Path
import time
from typing import TYPE_CHECKING, Any, Protocol

from page_insight.core.exceptions import UsageLimitError

if TYPE_CHECKING:
    import os

log = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT = 20
ONE_DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class StoredSettings:
    """Snapshot of everything the front door persists between runs.

    ``last_reset`` is a POSIX timestamp in seconds.
    """

    api_key: str = ""
    provider: str = "gemini"
    daily_usage: int = 0
    last_reset: float = field(default_factory=time.time)
    reading_mode: str = "professional"
    reading_intent: str = "casual"
    summary_level: int = 3

    @classmethod
    def from_mapping(cls, raw: object) -> StoredSettings:
        """Load from untrusted data, defaulting each mistyped field on its own."""
        defaults = cls()
        if not isinstance(raw, Mapping):
            return defaults

        def pick(name: str, kinds: tuple[type, ...]) -> Any:
            value = raw.get(name)
            # bool is an int subclass and never a valid counter.
            if isinstance(value, kinds) and not isinstance(value, bool):
                return value
            return getattr(defaults, name)

        return cls(
            api_key=pick("api_key", (str,)),
            provider=pick("provider", (str,)),
            daily_usage=pick("daily_usage", (int,)),
            last_reset=float(pick("last_reset", (int, float))),
            reading_mode=pick("reading_mode", (str,)),
            reading_intent=pick("reading_intent", (str,)),
            summary_level=pick("summary_level", (int,)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def preferences(self) -> dict[str, Any]:
        """Saved reading preferences, falling back to defaults when blank."""
        defaults = StoredSettings()
        return {
            "intent": self.reading_intent or defaults.reading_intent,
            "mode": self.reading_mode or defaults.reading_mode,
            "level": self.summary_level or defaults.summary_level,
        }

    def __repr__(self) -> str:
        key = "[REDACTED]" if self.api_key else ""
        return (
            f"StoredSettings(api_key={key!r}, provider={self.provider!r}, "
            f"daily_usage={self.daily_usage}, last_reset={self.last_reset}, "
            f"reading_mode={self.reading_mode!r}, "
            f"reading_intent={self.reading_intent!r}, "
            f"summary_level={self.summary_level})"
        )


class SettingsStore(Protocol):
    async def load(self) -> StoredSettings: ...

    async def save(self, settings: StoredSettings) -> None: ...


class InMemorySettingsStore:
    """Process-local store, mainly for tests and one-shot scripts."""

    def __init__(self, initial: StoredSettings | None = None) -> None:
        self._settings = initial or StoredSettings()

    async def load(self) -> StoredSettings:
        return self._settings

    async def save(self, settings: StoredSettings) -> None:
        self._settings = settings


class JSONSettingsStore:
    """Settings persisted in a single JSON file.

    Writes go to a sibling temp file that is then renamed over the target.
    A missing or corrupt file loads as defaults.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> StoredSettings:
        return StoredSettings.from_mapping(self._read())

    async def save(self, settings: StoredSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
        Path.replace(tmp, self._path)

    def _read(self) -> object:
        if not self._path.exists():
            return None
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return None


class UsageGate:
    """Enforces the daily summary budget against a ``SettingsStore``.

    Concurrent callers sharing one store must serialize ``record_success``
    themselves; the gate does no locking.
    """

    def __init__(
        self,
        store: SettingsStore,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if daily_limit < 0:
            raise ValueError("daily_limit must be >= 0")
        self.store = store
        self.daily_limit = daily_limit
        self._clock = clock

    async def check(self) -> StoredSettings:
        """Reset a stale counter, then refuse when the budget is spent.

        Raises:
            UsageLimitError: If today's usage already reached the limit.
        """
        settings = await self.store.load()
        now = self._clock()
        if now - settings.last_reset > ONE_DAY_SECONDS:
            log.debug("Resetting daily usage (was %d)", settings.daily_usage)
            settings = replace(settings, daily_usage=0, last_reset=now)
            await self.store.save(settings)
        if settings.daily_usage >= self.daily_limit:
            raise UsageLimitError(
                f"Daily limit reached ({self.daily_limit} summaries per day)",
                limit=self.daily_limit,
                used=settings.daily_usage,
            )
        return settings

    async def record_success(self) -> int:
        """Count one successful run and return the new total."""
        settings = await self.store.load()
        updated = replace(settings, daily_usage=settings.daily_usage + 1)
        await self.store.save(updated)
        return updated.daily_usage

    async def reset(self) -> None:
        settings = await self.store.load()
        await self.store.save(
            replace(settings, daily_usage=0, last_reset=self._clock())
        )
