"""Exception hierarchy for the page-insight pipeline.

Runners convert every recoverable error raised inside a stage into a warning
string. Only up-front validation failures (unknown provider, missing API key)
short-circuit an invocation, and even those are reported as data by the
runners rather than raised to the caller.
"""

from __future__ import annotations


class PageInsightError(Exception):
    """Base exception for all page-insight errors."""


class ValidationError(PageInsightError):
    """Raised when an invocation cannot start (bad provider, blank API key)."""


class ConfigurationError(PageInsightError):
    """Raised when configuration sources or values are invalid."""


class PromptConstructionError(PageInsightError):
    """Raised by a prompt builder that received an unsupported option."""


class UsageLimitError(PageInsightError):
    """Raised when the daily usage budget is exhausted."""

    def __init__(self, message: str, *, limit: int, used: int) -> None:
        """Record the configured limit and the current usage count."""
        super().__init__(message)
        self.limit = limit
        self.used = used


class TransportError(PageInsightError):
    """A single provider attempt failed at the HTTP or payload level.

    Carries the provider name plus, when available, the HTTP status and the
    response body so callers (and the rate-limit detector) can inspect them.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize with the provider identity and optional HTTP details."""
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class StageTimeoutError(PageInsightError, TimeoutError):
    """A single attempt exceeded its deadline."""

    def __init__(self, timeout_ms: int) -> None:
        """Initialize with the deadline that was exceeded."""
        super().__init__(f"Operation timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class PipelineError(PageInsightError):
    """A pipeline run produced no usable output.

    Attributes:
        stage_name: The stage that failed last.
        underlying: The original error or warning text, if any.
    """

    def __init__(
        self, message: str, stage_name: str, underlying: object | None = None
    ) -> None:
        """Initialize with the failing stage and the underlying cause."""
        super().__init__(message)
        self.stage_name = stage_name
        self.underlying = underlying
