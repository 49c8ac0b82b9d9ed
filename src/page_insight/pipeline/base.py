"""Shared plumbing for the batch and streaming runners.

Both runners validate the request up front, then execute stages one after
another. Stage outcomes are returned as ``Success``/``Failure`` values so the
runners decide how to report a failure (a warning string or an ``error``
event) without unwinding the pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import TYPE_CHECKING

from page_insight.core.exceptions import PipelineError, ValidationError
from page_insight.core.types import Failure, Result, Success
from page_insight.pipeline.adapters.registry import default_providers, resolve_provider
from page_insight.pipeline.stage_executor import RetryHook, StageExecutor
from page_insight.telemetry import TelemetryContext

if TYPE_CHECKING:
    from page_insight.core.types import ExecutionRequest, PromptPair
    from page_insight.pipeline.adapters.base import ProviderAdapter
    from page_insight.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

# Warning prefixes, one per stage.
PROGRESSIVE_FAILED = "Progressive summary failed"
REWRITE_FAILED = "Rewrite mode failed"
META_FAILED = "Meta analysis failed"
BIAS_FAILED = "Bias analysis failed"
MISSING_API_KEY = "Missing API key"


class BaseRunner:
    """Common constructor, pre-checks and stage execution."""

    def __init__(
        self,
        providers: Mapping[str, ProviderAdapter] | None = None,
        stage_executor: StageExecutor | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize with a provider registry, executor and telemetry.

        Args:
            providers: ``name -> adapter`` mapping; defaults to the standard
                Gemini and OpenAI adapters.
            stage_executor: Executor owning timeout and retry policy.
            telemetry: Optional telemetry context; no-op when omitted.
        """
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._providers: Mapping[str, ProviderAdapter] = (
            providers if providers is not None else default_providers()
        )
        self._executor = stage_executor or StageExecutor(telemetry=self._telemetry)

    def _precheck(
        self, request: ExecutionRequest
    ) -> Result[ProviderAdapter, ValidationError]:
        """Resolve the adapter and reject a blank API key."""
        try:
            adapter = resolve_provider(request.provider, self._providers)
        except ValidationError as e:
            return Failure(ValidationError(f"Invalid provider: {e}"))
        if not request.api_key.strip():
            return Failure(ValidationError(MISSING_API_KEY))
        return Success(adapter)

    def _retry_hook(self, stage: str) -> RetryHook:
        def on_retry(attempt: int, error: Exception) -> None:
            log.warning("Retrying %s stage (attempt %d): %s", stage, attempt, error)
            self._telemetry.count("stage.retry", stage=stage, attempt=attempt)

        return on_retry

    async def _run_stage(
        self,
        stage: str,
        plan_key: str,
        prompt: PromptPair | None,
        adapter: ProviderAdapter,
        request: ExecutionRequest,
    ) -> Result[str, Exception]:
        """Execute one stage, returning its text or the error that ended it."""
        if prompt is None:
            return Failure(PipelineError(f"plan has no {plan_key}", stage_name=stage))
        try:
            with self._telemetry("pipeline.stage", stage=stage):
                text = await self._executor.execute(
                    prompt,
                    adapter,
                    request.api_key,
                    request.timeout_ms,
                    request.retries,
                    on_retry=self._retry_hook(stage),
                )
        except Exception as e:
            log.warning("Stage %s failed: %s", stage, e)
            self._telemetry.count("stage.failure", stage=stage)
            return Failure(e)
        return Success(text)
