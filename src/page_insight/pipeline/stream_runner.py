"""Streaming execution: report each stage as soon as it completes.

``StreamRunner.stream`` is an async generator. It does no work until the
consumer pulls, so a consumer that stops iterating (or closes the generator)
prevents any later stage from running. The sequence always ends with exactly
one ``done`` event when iterated to completion.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
import logging
from typing import TYPE_CHECKING, Any

from page_insight.core.types import (
    BIAS_KEY,
    META_KEY,
    PROGRESSIVE_KEY,
    REWRITE_KEY,
    ExecutionRequest,
    Failure,
    PromptPair,
    StreamEvent,
)
from page_insight.pipeline.base import (
    BIAS_FAILED,
    META_FAILED,
    PROGRESSIVE_FAILED,
    REWRITE_FAILED,
    BaseRunner,
)
from page_insight.pipeline.rewrite import build_rewrite_instruction
from page_insight.response.bias import bias_score, categorize_bias
from page_insight.response.parsing import is_rate_limit_message, parse_json_safely
from page_insight.response.validation import is_valid_bias_output, is_valid_meta_output

if TYPE_CHECKING:
    from page_insight.pipeline.adapters.base import ProviderAdapter

log = logging.getLogger(__name__)

META_RATE_LIMITED = "Rate limit reached. Skipping advanced analysis."
BIAS_RATE_LIMITED = "Rate limit reached. Skipping bias analysis."


def _error(warning: str) -> StreamEvent:
    return StreamEvent(stage="error", warning=warning)


def _meta_data(text: str) -> Any:
    parsed = parse_json_safely(text)
    if is_valid_meta_output(parsed):
        return parsed
    return {"raw": text}


def _bias_data(text: str) -> Any:
    parsed = parse_json_safely(text)
    if not is_valid_bias_output(parsed):
        return {"raw": text}
    category = categorize_bias(parsed)
    return {**parsed, "category": category, "score": bias_score(category)}


class StreamRunner(BaseRunner):
    """Executes a plan and yields a ``StreamEvent`` per stage outcome.

    A meta failure that looks like a rate limit also skips the bias stage;
    a bias rate limit only replaces the bias failure message.
    """

    async def stream(self, request: ExecutionRequest) -> AsyncIterator[StreamEvent]:
        """Yield progressive, rewrite, meta and bias events, then ``done``."""
        precheck = self._precheck(request)
        if isinstance(precheck, Failure):
            yield _error(str(precheck.error))
            yield StreamEvent(stage="done")
            return
        adapter = precheck.value
        plan = request.plan

        summary = ""
        outcome = await self._run_stage(
            "progressive", PROGRESSIVE_KEY, plan.progressive, adapter, request
        )
        if isinstance(outcome, Failure):
            yield _error(f"{PROGRESSIVE_FAILED}: {outcome.error}")
        else:
            summary = outcome.value
            yield StreamEvent(stage="progressive", data=summary)

        if summary:
            yield await self._rewrite(summary, adapter, request)

        rate_limited = False
        if plan.meta is not None:
            outcome = await self._run_stage(
                "meta", META_KEY, plan.meta, adapter, request
            )
            if isinstance(outcome, Failure):
                message = str(outcome.error)
                if is_rate_limit_message(message):
                    rate_limited = True
                    self._telemetry.count("stream.rate_limit", stage="meta")
                    log.warning("Rate limit during meta analysis; skipping bias.")
                    yield _error(META_RATE_LIMITED)
                else:
                    yield _error(f"{META_FAILED}: {message}")
            else:
                yield StreamEvent(stage="meta", data=_meta_data(outcome.value))

        if plan.bias is not None and not rate_limited:
            outcome = await self._run_stage(
                "bias", BIAS_KEY, plan.bias, adapter, request
            )
            if isinstance(outcome, Failure):
                message = str(outcome.error)
                if is_rate_limit_message(message):
                    self._telemetry.count("stream.rate_limit", stage="bias")
                    yield _error(BIAS_RATE_LIMITED)
                else:
                    yield _error(f"{BIAS_FAILED}: {message}")
            else:
                yield StreamEvent(stage="bias", data=_bias_data(outcome.value))

        yield StreamEvent(stage="done")

    async def _rewrite(
        self, summary: str, adapter: ProviderAdapter, request: ExecutionRequest
    ) -> StreamEvent:
        planned = request.plan.rewrite
        prompt = (
            PromptPair(
                system=planned.system,
                instruction=build_rewrite_instruction(planned.instruction, summary),
            )
            if planned is not None
            else None
        )
        outcome = await self._run_stage("rewrite", REWRITE_KEY, prompt, adapter, request)
        if isinstance(outcome, Failure):
            return _error(f"{REWRITE_FAILED}: {outcome.error}")
        return StreamEvent(stage="rewrite", data=outcome.value)
