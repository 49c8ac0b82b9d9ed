"""Scenario entry points: from raw page text to a summary.

These functions glue the collaborators the core deliberately ignores: text
preparation, saved reading preferences and the daily usage budget. The
pipeline itself is reached through ``InsightExecutor``.

Example:
    import asyncio
    from page_insight import summarize_page

    result = asyncio.run(summarize_page(open("page.txt").read(), enable_meta=True))
    print(result.summary)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from page_insight.config import FrozenConfig, ResolvedConfig, load_config
from page_insight.core.exceptions import ValidationError
from page_insight.core.types import ExecutionResult, StreamEvent
from page_insight.executor import InsightExecutor
from page_insight.text import prepare_for_ai
from page_insight.usage import UsageGate

if TYPE_CHECKING:
    from page_insight.core.types import ExecutionRequest
    from page_insight.pipeline.adapters.base import ProviderAdapter
    from page_insight.usage import SettingsStore, StoredSettings

log = logging.getLogger(__name__)

NO_READABLE_CONTENT = "No readable content found"


def _frozen(config: FrozenConfig | ResolvedConfig | None) -> FrozenConfig:
    if config is None:
        return load_config()
    if isinstance(config, ResolvedConfig):
        return config.to_frozen()
    return config


def _raw_request(
    text: str,
    saved: StoredSettings | None,
    *,
    intent: str | None,
    mode: str | None,
    level: int | None,
    enable_meta: bool,
    enable_bias: bool,
) -> dict[str, Any]:
    """Explicit options win, then saved preferences, then request defaults."""
    prefs = saved.preferences() if saved is not None else {}
    raw: dict[str, Any] = {
        "text": text,
        "enable_meta": enable_meta,
        "enable_bias": enable_bias,
    }
    for name, explicit in (("intent", intent), ("mode", mode), ("level", level)):
        value = explicit if explicit is not None else prefs.get(name)
        if value is not None:
            raw[name] = value
    return raw


@dataclasses.dataclass(frozen=True, slots=True)
class _Prepared:
    """Everything ``summarize_page`` and ``stream_page`` share before running."""

    executor: InsightExecutor
    request: ExecutionRequest
    plan_warnings: list[str]
    gate: UsageGate | None


async def _prepare(
    text: str,
    *,
    intent: str | None,
    mode: str | None,
    level: int | None,
    enable_meta: bool,
    enable_bias: bool,
    config: FrozenConfig | ResolvedConfig | None,
    store: SettingsStore | None,
    providers: Mapping[str, ProviderAdapter] | None,
) -> _Prepared:
    frozen = _frozen(config)
    prepared_text = prepare_for_ai(text, frozen.max_chars)
    if not prepared_text:
        raise ValidationError(NO_READABLE_CONTENT)

    gate: UsageGate | None = None
    saved: StoredSettings | None = None
    if store is not None:
        gate = UsageGate(store, daily_limit=frozen.daily_limit)
        saved = await gate.check()
        if not frozen.api_key and saved.api_key:
            frozen = dataclasses.replace(frozen, api_key=saved.api_key)

    executor = InsightExecutor(frozen, providers=providers)
    plan, plan_warnings = executor.plan(
        _raw_request(
            prepared_text,
            saved,
            intent=intent,
            mode=mode,
            level=level,
            enable_meta=enable_meta,
            enable_bias=enable_bias,
        )
    )
    for warning in plan_warnings:
        log.warning("Request corrected: %s", warning)
    return _Prepared(executor, executor.request_for(plan), plan_warnings, gate)


async def summarize_page(
    text: str,
    *,
    intent: str | None = None,
    mode: str | None = None,
    level: int | None = None,
    enable_meta: bool = False,
    enable_bias: bool = False,
    config: FrozenConfig | ResolvedConfig | None = None,
    store: SettingsStore | None = None,
    providers: Mapping[str, ProviderAdapter] | None = None,
) -> ExecutionResult:
    """Summarize page text end to end.

    Args:
        text: Raw extracted page text; it is sanitized and truncated first.
        intent: Reading intent; defaults to the saved preference.
        mode: Reading mode; defaults to the saved preference.
        level: Summary level; defaults to the saved preference.
        enable_meta: Run the meta analysis stage.
        enable_bias: Run the bias analysis stage.
        config: Configuration to use; resolved from the environment if omitted.
        store: Settings store. When given, the daily budget is enforced, saved
            preferences apply and a stored API key fills in a missing one.
        providers: Provider registry override.

    Returns:
        The run's result with request corrections listed first in ``warnings``.

    Raises:
        ValidationError: If no readable text remains after preparation.
        UsageLimitError: If the daily budget is already spent.
    """
    prepared = await _prepare(
        text,
        intent=intent,
        mode=mode,
        level=level,
        enable_meta=enable_meta,
        enable_bias=enable_bias,
        config=config,
        store=store,
        providers=providers,
    )
    result = await prepared.executor.execute(prepared.request)
    if prepared.plan_warnings:
        result = dataclasses.replace(
            result, warnings=[*prepared.plan_warnings, *result.warnings]
        )
    if result.summary and prepared.gate is not None:
        used = await prepared.gate.record_success()
        log.debug("Daily usage now %d", used)
    return result


async def stream_page(
    text: str,
    *,
    intent: str | None = None,
    mode: str | None = None,
    level: int | None = None,
    enable_meta: bool = False,
    enable_bias: bool = False,
    config: FrozenConfig | ResolvedConfig | None = None,
    store: SettingsStore | None = None,
    providers: Mapping[str, ProviderAdapter] | None = None,
) -> AsyncIterator[StreamEvent]:
    """Streaming counterpart of ``summarize_page``.

    Request corrections are yielded first as ``error`` events. Usage is
    recorded once, after the first ``progressive`` or ``rewrite`` event.
    Preparation errors are raised on the first iteration.
    """
    prepared = await _prepare(
        text,
        intent=intent,
        mode=mode,
        level=level,
        enable_meta=enable_meta,
        enable_bias=enable_bias,
        config=config,
        store=store,
        providers=providers,
    )
    for warning in prepared.plan_warnings:
        yield StreamEvent(stage="error", warning=warning)

    recorded = False
    async for event in prepared.executor.stream(prepared.request):
        if (
            not recorded
            and prepared.gate is not None
            and event.stage in ("progressive", "rewrite")
        ):
            await prepared.gate.record_success()
            recorded = True
        yield event
