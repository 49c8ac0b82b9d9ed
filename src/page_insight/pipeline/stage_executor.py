"""Timeout and retry discipline for a single stage call.

Each attempt races the adapter call against a deadline. A failed attempt
(transport error, timeout, malformed response) is retried after an
exponential backoff until ``retries + 1`` attempts have been made; the last
error is then re-raised unchanged. Cancellation of the calling task is never
retried or swallowed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import TYPE_CHECKING, TypeVar

from page_insight.core.exceptions import StageTimeoutError
from page_insight.telemetry import TelemetryContext

if TYPE_CHECKING:
    from page_insight.core.types import PromptPair
    from page_insight.pipeline.adapters.base import ProviderAdapter
    from page_insight.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

T = TypeVar("T")

BASE_DELAY_MS = 1000
MAX_DELAY_MS = 5000

RetryHook = Callable[[int, Exception], None]
Sleep = Callable[[float], Awaitable[object]]


def backoff_delay_ms(attempt: int) -> int:
    """Delay before the attempt following zero-based ``attempt``."""
    return min(BASE_DELAY_MS * 2**attempt, MAX_DELAY_MS)


async def with_timeout(awaitable: Awaitable[T], timeout_ms: int) -> T:
    """Await ``awaitable`` or raise ``StageTimeoutError`` after ``timeout_ms``.

    On expiry the pending call is cancelled, so its late outcome is never
    observed.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except TimeoutError:
        raise StageTimeoutError(timeout_ms) from None


class StageExecutor:
    """Runs one prompt against one adapter with timeout and retries.

    ``sleep`` is injectable so tests can observe backoff delays without
    waiting for them.
    """

    def __init__(
        self,
        sleep: Sleep = asyncio.sleep,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize with a sleep function and optional telemetry."""
        self._sleep = sleep
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    async def execute(
        self,
        prompt: PromptPair,
        adapter: ProviderAdapter,
        api_key: str,
        timeout_ms: int,
        retries: int,
        on_retry: RetryHook | None = None,
    ) -> str:
        """Return the adapter's text, retrying failed attempts.

        Between attempt ``i`` and ``i + 1`` (zero-based) ``on_retry(i + 1,
        error)`` is called, then the executor sleeps ``backoff_delay_ms(i)``.
        There is no sleep after the final attempt.

        Raises:
            Exception: The last attempt's error once all attempts failed.
        """
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        provider = getattr(adapter, "name", type(adapter).__name__)
        attempt = 0
        while True:
            try:
                with self._telemetry(
                    "stage.attempt", provider=provider, attempt=attempt + 1
                ):
                    return await with_timeout(
                        adapter.send_prompt(prompt, api_key), timeout_ms
                    )
            except Exception as e:
                log.debug(
                    "Attempt %d/%d against %s failed: %s",
                    attempt + 1,
                    retries + 1,
                    provider,
                    e,
                )
                if attempt == retries:
                    raise
                if on_retry is not None:
                    on_retry(attempt + 1, e)
                await self._sleep(backoff_delay_ms(attempt) / 1000)
                attempt += 1


_DEFAULT_EXECUTOR = StageExecutor()


async def execute_stage(
    prompt: PromptPair,
    adapter: ProviderAdapter,
    api_key: str,
    timeout_ms: int,
    retries: int,
    on_retry: RetryHook | None = None,
) -> str:
    """Run one stage with the default executor."""
    return await _DEFAULT_EXECUTOR.execute(
        prompt, adapter, api_key, timeout_ms, retries, on_retry
    )
