"""Staged LLM pipeline for summarizing and analyzing page text."""

import importlib.metadata
import logging

from page_insight.config import FrozenConfig, ResolvedConfig, load_config, resolve_config
from page_insight.core.exceptions import (
    ConfigurationError,
    PageInsightError,
    PipelineError,
    PromptConstructionError,
    StageTimeoutError,
    TransportError,
    UsageLimitError,
    ValidationError,
)
from page_insight.core.types import (
    ExecutionRequest,
    ExecutionResult,
    Failure,
    PipelineRequest,
    Plan,
    PlanResult,
    PromptPair,
    Result,
    StreamEvent,
    Success,
)
from page_insight.executor import (
    InsightExecutor,
    create_executor,
    execute_plan,
    execute_plan_stream,
)
from page_insight.frontdoor import stream_page, summarize_page
from page_insight.pipeline.adapters import (
    GeminiAdapter,
    OpenAIAdapter,
    ProviderAdapter,
    default_providers,
)
from page_insight.pipeline.planner import PlanBuilder, build_plan, describe_pipeline
from page_insight.telemetry import TelemetryContext, TelemetryReporter
from page_insight.text import prepare_for_ai
from page_insight.usage import (
    InMemorySettingsStore,
    JSONSettingsStore,
    StoredSettings,
    UsageGate,
)

# Version handling
try:
    __version__ = importlib.metadata.version("page-insight")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Entry points
    "summarize_page",
    "stream_page",
    "execute_plan",
    "execute_plan_stream",
    "InsightExecutor",
    "create_executor",
    # Planning
    "PlanBuilder",
    "build_plan",
    "describe_pipeline",
    # Providers
    "ProviderAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "default_providers",
    # Configuration
    "FrozenConfig",
    "ResolvedConfig",
    "load_config",
    "resolve_config",
    # Settings and usage
    "StoredSettings",
    "InMemorySettingsStore",
    "JSONSettingsStore",
    "UsageGate",
    "prepare_for_ai",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Core Types
    "PipelineRequest",
    "PromptPair",
    "Plan",
    "PlanResult",
    "ExecutionRequest",
    "ExecutionResult",
    "StreamEvent",
    "Result",
    "Success",
    "Failure",
    # Exceptions
    "PageInsightError",
    "ValidationError",
    "ConfigurationError",
    "PromptConstructionError",
    "TransportError",
    "StageTimeoutError",
    "UsageLimitError",
    "PipelineError",
]
