"""Telemetry context and reporter interfaces.

Stage runners record scoped timings (``pipeline.stage``, ``stage.attempt``)
and counters (``stage.retry``, ``stage.failure``, ``stream.rate_limit``)
through a context object. When telemetry is disabled the context is a shared
immutable no-op, so instrumented code pays almost nothing.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

# Scope nesting is tracked per task so concurrent invocations do not interleave.
_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "scope_stack",
    default=(),
)
_call_count_var: ContextVar[int] = ContextVar("call_count", default=0)


def telemetry_enabled_from_env() -> bool:
    """Return True when the environment asks for telemetry."""
    return (
        os.getenv("PAGE_INSIGHT_TELEMETRY") == "1" or os.getenv("DEBUG") == "1"
    )


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """An immutable and stateless no-op context."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    @property
    def is_enabled(self) -> bool:
        return False

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Full-featured telemetry context when enabled."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager[_EnabledTelemetryContext]:
        return self._create_scope(name, **metadata)

    @property
    def is_enabled(self) -> bool:
        return True

    @contextmanager
    def _create_scope(
        self, name: str, **metadata: Any
    ) -> Iterator[_EnabledTelemetryContext]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        scope_stack = _scope_stack_var.get()
        call_count = _call_count_var.get()
        scope_path = ".".join((*scope_stack, name))
        start_time = time.perf_counter()

        scope_token = _scope_stack_var.set((*scope_stack, name))
        count_token = _call_count_var.set(call_count + 1)

        try:
            yield self
        finally:
            duration = time.perf_counter() - start_time
            _scope_stack_var.reset(scope_token)
            _call_count_var.reset(count_token)

            final_stack = _scope_stack_var.get()
            enhanced_metadata = {
                "depth": len(final_stack),
                "call_count": _call_count_var.get(),
                "parent_scope": ".".join(final_stack) if final_stack else None,
                **metadata,
            }
            for reporter in self.reporters:
                try:
                    reporter.record_timing(scope_path, duration, **enhanced_metadata)
                except Exception as e:
                    log.error(
                        "Telemetry reporter '%s' failed: %s",
                        type(reporter).__name__,
                        e,
                        exc_info=True,
                    )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric within the current scope."""
        scope_stack = _scope_stack_var.get()
        scope_path = ".".join((*scope_stack, name))
        enhanced_metadata = {
            "depth": len(scope_stack),
            "parent_scope": ".".join(scope_stack) if scope_stack else None,
            **metadata,
        }
        for reporter in self.reporters:
            try:
                reporter.record_metric(scope_path, value, **enhanced_metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Record a counter metric."""
        self.metric(name, increment, metric_type="counter", **metadata)

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        """Record a gauge metric."""
        self.metric(name, value, metric_type="gauge", **metadata)


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a telemetry context.

    Explicit reporters always enable telemetry. Without reporters the context
    is enabled only when ``PAGE_INSIGHT_TELEMETRY=1`` (or ``DEBUG=1``) is set,
    in which case measurements go to the debug log.
    """
    if reporters:
        return _EnabledTelemetryContext(*reporters)
    if telemetry_enabled_from_env():
        return _EnabledTelemetryContext(_LoggingReporter())
    return _NO_OP_SINGLETON


class _LoggingReporter:
    """Reporter that forwards every measurement to the debug log."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        log.debug("timing %s %.4fs %s", scope, duration, metadata)

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        log.debug("metric %s=%r %s", scope, value, metadata)


class _SimpleReporter:
    """In-memory reporter for development use and tests.

    Call ``get_report()`` to render what was collected, or inspect
    ``timings``/``metrics`` directly.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        if scope not in self.timings:
            self.timings[scope] = deque(maxlen=self.max_entries)
        self.timings[scope].append((duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        if scope not in self.metrics:
            self.metrics[scope] = deque(maxlen=self.max_entries)
        self.metrics[scope].append((value, metadata))

    def metric_total(self, suffix: str) -> int | float:
        """Sum numeric values of every metric whose scope ends with ``suffix``."""
        return sum(
            value
            for scope, values in self.metrics.items()
            if scope.endswith(suffix)
            for value, _ in values
            if isinstance(value, int | float)
        )

    def get_report(self) -> str:
        """Generate a flat telemetry report."""
        lines = ["=== Telemetry Report ===", "", "--- Timings ---"]
        for scope, values in sorted(self.timings.items()):
            durations = [v[0] for v in values]
            lines.append(
                f"{scope:<40} | "
                f"Calls: {len(durations):<4} | "
                f"Avg: {sum(durations) / len(durations):.4f}s | "
                f"Total: {sum(durations):.4f}s",
            )
        if self.metrics:
            lines.append("")
            lines.append("--- Metrics ---")
            for scope, metric_values in sorted(self.metrics.items()):
                total = sum(
                    v[0] for v in metric_values if isinstance(v[0], int | float)
                )
                lines.append(
                    f"{scope:<40} | Count: {len(metric_values):<4} | Total: {total:,.0f}",
                )
        return "\n".join(lines)
