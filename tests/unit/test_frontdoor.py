"""End-to-end entry points: text preparation, saved preferences, usage budget."""

import pytest

from page_insight.config import load_config
from page_insight.core.exceptions import UsageLimitError, ValidationError
from page_insight.frontdoor import NO_READABLE_CONTENT, stream_page, summarize_page
from page_insight.usage import InMemorySettingsStore, StoredSettings
from tests.helpers import REWRITTEN, FakeAdapter, transport_error

pytestmark = pytest.mark.unit

TEXT = "Remote work is here to stay.   Managers disagree."


@pytest.fixture
def config():
    return load_config({"api_key": "config-key", "retries": 0})


@pytest.fixture
def keyless_config():
    return load_config({"retries": 0})


def fresh_store(**fields) -> InMemorySettingsStore:
    fields.setdefault("last_reset", 9_999_999_999.0)
    return InMemorySettingsStore(StoredSettings(**fields))


class TestSummarizePage:
    @pytest.mark.asyncio
    async def test_returns_rewritten_summary(self, config):
        adapter = FakeAdapter()

        result = await summarize_page(TEXT, config=config, providers={"gemini": adapter})

        assert result.summary == REWRITTEN
        assert result.warnings == []
        assert adapter.stages == ["progressive", "rewrite"]

    @pytest.mark.asyncio
    async def test_text_is_prepared_before_planning(self, config):
        adapter = FakeAdapter()

        await summarize_page(TEXT, config=config, providers={"gemini": adapter})

        (prompt,) = adapter.prompts_for("progressive")
        assert "Remote work is here to stay. Managers disagree." in prompt.instruction

    @pytest.mark.parametrize("text", ["", "   \u200b\n\n  "])
    @pytest.mark.asyncio
    async def test_unreadable_text_raises(self, config, text):
        adapter = FakeAdapter()

        with pytest.raises(ValidationError, match=NO_READABLE_CONTENT):
            await summarize_page(text, config=config, providers={"gemini": adapter})

        assert adapter.calls == []

    @pytest.mark.asyncio
    async def test_plan_corrections_come_first(self, config):
        result = await summarize_page(
            TEXT,
            intent="gossip",
            config=config,
            providers={"gemini": FakeAdapter()},
        )

        assert result.warnings == ["Invalid intent 'gossip': defaulted to 'casual'"]
        assert result.summary == REWRITTEN

    @pytest.mark.asyncio
    async def test_optional_stages(self, config):
        adapter = FakeAdapter()

        result = await summarize_page(
            TEXT,
            enable_meta=True,
            enable_bias=True,
            config=config,
            providers={"gemini": adapter},
        )

        assert adapter.stages == ["progressive", "rewrite", "meta", "bias"]
        assert result.meta is not None
        assert result.bias is not None


class TestUsageBudget:
    @pytest.mark.asyncio
    async def test_success_is_recorded(self, config):
        store = fresh_store(daily_usage=3)

        await summarize_page(
            TEXT, config=config, store=store, providers={"gemini": FakeAdapter()}
        )

        assert (await store.load()).daily_usage == 4

    @pytest.mark.asyncio
    async def test_failed_summary_is_not_recorded(self, config):
        store = fresh_store(daily_usage=3)
        adapter = FakeAdapter({"progressive": transport_error()})

        result = await summarize_page(
            TEXT, config=config, store=store, providers={"gemini": adapter}
        )

        assert result.summary == ""
        assert (await store.load()).daily_usage == 3

    @pytest.mark.asyncio
    async def test_spent_budget_refuses_before_any_call(self, config):
        store = fresh_store(daily_usage=20)
        adapter = FakeAdapter()

        with pytest.raises(UsageLimitError):
            await summarize_page(
                TEXT, config=config, store=store, providers={"gemini": adapter}
            )

        assert adapter.calls == []


class TestStoredSettings:
    @pytest.mark.asyncio
    async def test_saved_preferences_apply(self, config):
        store = fresh_store(reading_mode="simple", reading_intent="exam", summary_level=1)
        adapter = FakeAdapter()

        await summarize_page(
            TEXT, config=config, store=store, providers={"gemini": adapter}
        )

        (progressive,) = adapter.prompts_for("progressive")
        assert progressive.instruction.endswith("One-sentence summary:")

    @pytest.mark.asyncio
    async def test_explicit_options_beat_saved_preferences(self, config):
        store = fresh_store(summary_level=1)
        adapter = FakeAdapter()

        await summarize_page(
            TEXT, level=3, config=config, store=store, providers={"gemini": adapter}
        )

        (progressive,) = adapter.prompts_for("progressive")
        assert progressive.instruction.endswith("Structured summary:")

    @pytest.mark.asyncio
    async def test_stored_key_fills_missing_config_key(self, keyless_config):
        store = fresh_store(api_key="stored-key")
        adapter = FakeAdapter()

        await summarize_page(
            TEXT, config=keyless_config, store=store, providers={"gemini": adapter}
        )

        assert {key for _, _, key in adapter.calls} == {"stored-key"}

    @pytest.mark.asyncio
    async def test_config_key_wins_over_stored_key(self, config):
        store = fresh_store(api_key="stored-key")
        adapter = FakeAdapter()

        await summarize_page(
            TEXT, config=config, store=store, providers={"gemini": adapter}
        )

        assert {key for _, _, key in adapter.calls} == {"config-key"}

    @pytest.mark.asyncio
    async def test_no_key_anywhere_is_a_warning(self, keyless_config):
        result = await summarize_page(
            TEXT, config=keyless_config, providers={"gemini": FakeAdapter()}
        )

        assert result.summary == ""
        assert result.warnings == ["Missing API key"]


class TestStreamPage:
    @pytest.mark.asyncio
    async def test_events_and_single_usage_record(self, config):
        store = fresh_store(daily_usage=0)

        events = [
            event
            async for event in stream_page(
                TEXT,
                mode="loud",
                config=config,
                store=store,
                providers={"gemini": FakeAdapter()},
            )
        ]

        assert [event.stage for event in events] == [
            "error",
            "progressive",
            "rewrite",
            "done",
        ]
        assert events[0].warning == "Invalid mode 'loud': defaulted to 'professional'"
        assert (await store.load()).daily_usage == 1

    @pytest.mark.asyncio
    async def test_usage_recorded_before_progressive_is_seen(self, config):
        store = fresh_store(daily_usage=0)
        stream = stream_page(
            TEXT, config=config, store=store, providers={"gemini": FakeAdapter()}
        )

        first = await anext(stream)
        await stream.aclose()

        assert first.stage == "progressive"
        assert (await store.load()).daily_usage == 1

    @pytest.mark.asyncio
    async def test_failed_progressive_is_not_recorded(self, config):
        store = fresh_store(daily_usage=0)
        adapter = FakeAdapter({"progressive": transport_error()})

        stages = [
            event.stage
            async for event in stream_page(
                TEXT, config=config, store=store, providers={"gemini": adapter}
            )
        ]

        assert stages == ["error", "done"]
        assert (await store.load()).daily_usage == 0

    @pytest.mark.asyncio
    async def test_preparation_errors_raise_on_first_pull(self, config):
        stream = stream_page("", config=config, providers={"gemini": FakeAdapter()})

        with pytest.raises(ValidationError):
            await anext(stream)
