"""Batch execution: run every planned stage and aggregate one result."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from page_insight.core.types import (
    BIAS_KEY,
    META_KEY,
    PROGRESSIVE_KEY,
    REWRITE_KEY,
    ExecutionRequest,
    ExecutionResult,
    Failure,
    PromptPair,
)
from page_insight.pipeline.base import (
    BIAS_FAILED,
    META_FAILED,
    PROGRESSIVE_FAILED,
    REWRITE_FAILED,
    BaseRunner,
)
from page_insight.pipeline.rewrite import build_rewrite_instruction
from page_insight.response.parsing import parse_json_safely

if TYPE_CHECKING:
    from page_insight.pipeline.adapters.base import ProviderAdapter

log = logging.getLogger(__name__)


class BatchRunner(BaseRunner):
    """Executes a plan stage by stage and returns an ``ExecutionResult``.

    Order: progressive, then rewrite (only when a summary exists), then meta
    and bias when planned. A failed stage adds one warning and the run goes
    on; nothing is raised once the pre-checks have passed.
    """

    async def run(self, request: ExecutionRequest) -> ExecutionResult:
        """Execute ``request`` and aggregate summary, meta, bias and warnings."""
        precheck = self._precheck(request)
        if isinstance(precheck, Failure):
            return ExecutionResult(summary="", warnings=[str(precheck.error)])
        adapter = precheck.value
        plan = request.plan
        warnings: list[str] = []

        with self._telemetry("pipeline.batch", provider=request.provider):
            summary = ""
            outcome = await self._run_stage(
                "progressive", PROGRESSIVE_KEY, plan.progressive, adapter, request
            )
            if isinstance(outcome, Failure):
                warnings.append(f"{PROGRESSIVE_FAILED}: {outcome.error}")
            else:
                summary = outcome.value

            if summary:
                summary = await self._rewrite(summary, adapter, request, warnings)

            meta = await self._analysis(
                "meta", META_KEY, plan.meta, META_FAILED, adapter, request, warnings
            )
            bias = await self._analysis(
                "bias", BIAS_KEY, plan.bias, BIAS_FAILED, adapter, request, warnings
            )

        log.debug(
            "Batch run finished: summary=%d chars, %d warnings",
            len(summary),
            len(warnings),
        )
        return ExecutionResult(summary=summary, meta=meta, bias=bias, warnings=warnings)

    async def _rewrite(
        self,
        summary: str,
        adapter: ProviderAdapter,
        request: ExecutionRequest,
        warnings: list[str],
    ) -> str:
        """Return the rewritten summary, or ``summary`` itself on failure."""
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
            warnings.append(f"{REWRITE_FAILED}: {outcome.error}")
            return summary
        return outcome.value

    async def _analysis(
        self,
        stage: str,
        plan_key: str,
        prompt: PromptPair | None,
        failure_label: str,
        adapter: ProviderAdapter,
        request: ExecutionRequest,
        warnings: list[str],
    ) -> Any:
        """Run an optional analysis stage; ``None`` when unplanned or failed."""
        if prompt is None:
            return None
        outcome = await self._run_stage(stage, plan_key, prompt, adapter, request)
        if isinstance(outcome, Failure):
            warnings.append(f"{failure_label}: {outcome.error}")
            return None
        parsed = parse_json_safely(outcome.value)
        # ``None`` is reserved for unplanned or failed stages.
        return outcome.value if parsed is None else parsed
