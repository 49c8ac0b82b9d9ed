"""Settings persistence and the daily usage gate."""

import json

import pytest

from page_insight.core.exceptions import UsageLimitError
from page_insight.usage import (
    ONE_DAY_SECONDS,
    InMemorySettingsStore,
    JSONSettingsStore,
    StoredSettings,
    UsageGate,
)

pytestmark = pytest.mark.unit

NOW = 1_700_000_000.0


class FixedClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestStoredSettings:
    def test_mistyped_fields_default_independently(self):
        loaded = StoredSettings.from_mapping(
            {
                "api_key": 123,
                "provider": "openai",
                "daily_usage": "seven",
                "last_reset": 5.0,
                "reading_mode": "expert",
                "reading_intent": None,
                "summary_level": True,
            }
        )

        assert loaded.api_key == ""
        assert loaded.provider == "openai"
        assert loaded.daily_usage == 0
        assert loaded.last_reset == 5.0
        assert loaded.reading_mode == "expert"
        assert loaded.reading_intent == "casual"
        assert loaded.summary_level == 3

    def test_non_mapping_loads_defaults(self):
        assert StoredSettings.from_mapping("garbage").daily_usage == 0

    def test_preferences_fall_back_when_blank(self):
        settings = StoredSettings(reading_mode="", reading_intent="exam", summary_level=0)

        assert settings.preferences() == {
            "intent": "exam",
            "mode": "professional",
            "level": 3,
        }

    def test_repr_redacts_api_key(self):
        assert "sk-secret" not in repr(StoredSettings(api_key="sk-secret"))


class TestJSONSettingsStore:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        store = JSONSettingsStore(tmp_path / "nested" / "settings.json")
        settings = StoredSettings(api_key="k", daily_usage=4, last_reset=NOW)

        await store.save(settings)

        assert await store.load() == settings
        assert not (tmp_path / "nested" / "settings.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_file_loads_defaults(self, tmp_path):
        loaded = await JSONSettingsStore(tmp_path / "absent.json").load()
        assert loaded.daily_usage == 0
        assert loaded.reading_mode == "professional"

    @pytest.mark.asyncio
    async def test_corrupt_file_loads_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        loaded = await JSONSettingsStore(path).load()

        assert loaded.daily_usage == 0

    @pytest.mark.asyncio
    async def test_file_is_plain_json(self, tmp_path):
        path = tmp_path / "settings.json"
        await JSONSettingsStore(path).save(StoredSettings(daily_usage=2, last_reset=NOW))

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["daily_usage"] == 2
        assert data["last_reset"] == NOW


class TestUsageGate:
    @pytest.mark.asyncio
    async def test_allows_under_limit(self):
        store = InMemorySettingsStore(StoredSettings(daily_usage=19, last_reset=NOW))
        gate = UsageGate(store, daily_limit=20, clock=FixedClock())

        settings = await gate.check()

        assert settings.daily_usage == 19

    @pytest.mark.asyncio
    async def test_refuses_at_limit(self):
        store = InMemorySettingsStore(StoredSettings(daily_usage=20, last_reset=NOW))
        gate = UsageGate(store, daily_limit=20, clock=FixedClock(NOW + 60))

        with pytest.raises(UsageLimitError) as exc_info:
            await gate.check()

        assert str(exc_info.value) == "Daily limit reached (20 summaries per day)"
        assert exc_info.value.limit == 20
        assert exc_info.value.used == 20

    @pytest.mark.asyncio
    async def test_resets_after_a_day(self):
        store = InMemorySettingsStore(StoredSettings(daily_usage=20, last_reset=NOW))
        later = NOW + ONE_DAY_SECONDS + 1
        gate = UsageGate(store, daily_limit=20, clock=FixedClock(later))

        settings = await gate.check()

        assert settings.daily_usage == 0
        stored = await store.load()
        assert stored.daily_usage == 0
        assert stored.last_reset == later

    @pytest.mark.asyncio
    async def test_exactly_one_day_does_not_reset(self):
        store = InMemorySettingsStore(StoredSettings(daily_usage=5, last_reset=NOW))
        gate = UsageGate(store, daily_limit=5, clock=FixedClock(NOW + ONE_DAY_SECONDS))

        with pytest.raises(UsageLimitError):
            await gate.check()

    @pytest.mark.asyncio
    async def test_record_success_increments(self):
        store = InMemorySettingsStore(StoredSettings(last_reset=NOW))
        gate = UsageGate(store, clock=FixedClock())

        assert await gate.record_success() == 1
        assert await gate.record_success() == 2
        assert (await store.load()).daily_usage == 2

    @pytest.mark.asyncio
    async def test_reset(self):
        store = InMemorySettingsStore(StoredSettings(daily_usage=9, last_reset=0.0))
        gate = UsageGate(store, clock=FixedClock())

        await gate.reset()

        stored = await store.load()
        assert stored.daily_usage == 0
        assert stored.last_reset == NOW

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            UsageGate(InMemorySettingsStore(), daily_limit=-1)
