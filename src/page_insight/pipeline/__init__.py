"""Plan building, stage execution and the batch/streaming runners."""

from page_insight.pipeline.batch_runner import BatchRunner
from page_insight.pipeline.planner import PlanBuilder, build_plan, sanitize_request
from page_insight.pipeline.stage_executor import (
    StageExecutor,
    backoff_delay_ms,
    execute_stage,
    with_timeout,
)
from page_insight.pipeline.stream_runner import StreamRunner

__all__ = [
    "BatchRunner",
    "PlanBuilder",
    "StageExecutor",
    "StreamRunner",
    "backoff_delay_ms",
    "build_plan",
    "execute_stage",
    "sanitize_request",
    "with_timeout",
]
