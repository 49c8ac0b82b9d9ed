"""Caller-facing entry points for running a plan.

``execute_plan`` and ``execute_plan_stream`` run an ``ExecutionRequest``
against an explicit provider registry. ``InsightExecutor`` binds that
registry, the retry/timeout policy and the API key to a ``FrozenConfig``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
import logging
from typing import TYPE_CHECKING

from page_insight.config import FrozenConfig, ResolvedConfig, resolve_config
from page_insight.core.types import ExecutionRequest, ExecutionResult, Plan, StreamEvent
from page_insight.pipeline.adapters.registry import default_providers
from page_insight.pipeline.batch_runner import BatchRunner
from page_insight.pipeline.planner import build_plan
from page_insight.pipeline.stream_runner import StreamRunner
from page_insight.telemetry import TelemetryContext

if TYPE_CHECKING:
    from page_insight.core.types import PlanResult
    from page_insight.pipeline.adapters.base import ProviderAdapter
    from page_insight.pipeline.stage_executor import StageExecutor
    from page_insight.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


async def execute_plan(
    request: ExecutionRequest,
    *,
    providers: Mapping[str, ProviderAdapter] | None = None,
) -> ExecutionResult:
    """Run every planned stage and return the aggregated result."""
    return await BatchRunner(providers).run(request)


def execute_plan_stream(
    request: ExecutionRequest,
    *,
    providers: Mapping[str, ProviderAdapter] | None = None,
) -> AsyncIterator[StreamEvent]:
    """Return the lazy event stream for ``request``."""
    return StreamRunner(providers).stream(request)


class InsightExecutor:
    """Runs plans with the providers and policy taken from configuration."""

    def __init__(
        self,
        config: FrozenConfig,
        *,
        providers: Mapping[str, ProviderAdapter] | None = None,
        stage_executor: StageExecutor | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize with configuration and optional collaborators.

        Args:
            config: Frozen configuration supplying provider, key and policy.
            providers: Registry override; defaults to adapters built from
                ``config``.
            stage_executor: Executor override (tests inject a no-op sleep).
            telemetry: Optional telemetry context.
        """
        self.config = config
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._providers: Mapping[str, ProviderAdapter] = (
            providers if providers is not None else default_providers(config)
        )
        self._batch = BatchRunner(self._providers, stage_executor, self._telemetry)
        self._stream = StreamRunner(self._providers, stage_executor, self._telemetry)

    @property
    def providers(self) -> Mapping[str, ProviderAdapter]:
        return self._providers

    def request_for(self, plan: Plan) -> ExecutionRequest:
        """Build an ``ExecutionRequest`` for ``plan`` from configuration."""
        return ExecutionRequest(
            plan=plan,
            provider=self.config.provider,
            api_key=self.config.api_key or "",
            timeout_ms=self.config.timeout_ms,
            retries=self.config.retries,
        )

    def plan(self, raw: object) -> PlanResult:
        return build_plan(raw)

    async def execute(self, request: ExecutionRequest | Plan) -> ExecutionResult:
        """Run a request (or a bare plan, filled from configuration)."""
        if isinstance(request, Plan):
            request = self.request_for(request)
        log.debug("Executing %r", request)
        return await self._batch.run(request)

    def stream(self, request: ExecutionRequest | Plan) -> AsyncIterator[StreamEvent]:
        """Return the event stream for a request (or a bare plan)."""
        if isinstance(request, Plan):
            request = self.request_for(request)
        return self._stream.stream(request)


def create_executor(
    config: FrozenConfig | ResolvedConfig | None = None,
    *,
    providers: Mapping[str, ProviderAdapter] | None = None,
) -> InsightExecutor:
    """Create an executor, resolving configuration when none is given."""
    if config is None:
        config = resolve_config()
    if isinstance(config, ResolvedConfig):
        config = config.to_frozen()
    return InsightExecutor(config, providers=providers)
