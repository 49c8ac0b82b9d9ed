"""Shared fakes for pipeline tests: scripted adapters and a recording sleep."""

from collections.abc import Callable
import json
from typing import Any

from page_insight.core.exceptions import TransportError
from page_insight.core.types import ExecutionRequest, PromptPair
from page_insight.pipeline.planner import build_plan

VALID_META = {
    "coreArgument": "Remote work raises output.",
    "authorIntent": "To persuade managers.",
    "stakes": "Office leases and hiring.",
    "persuasionSignals": ["selective statistics"],
    "missingPerspectives": ["employees who prefer offices"],
}

VALID_BIAS = {
    "stance": "Favors remote work",
    "emotionalTone": "Calm",
    "loadedLanguageExamples": [],
    "persuasionTechniques": ["appeal to data"],
    "evidenceBalance": "Mostly one-sided",
    "neutralityAssessment": "The piece is balanced overall.",
}

SUMMARY = "- Remote work raises output\n- Managers resist it"
REWRITTEN = "Remote work makes teams more productive."


def stage_of(prompt: PromptPair) -> str:
    """Tell which pipeline stage a prompt belongs to from its instruction."""
    instruction = prompt.instruction
    if instruction.endswith("JSON meta-analysis:"):
        return "meta"
    if instruction.endswith("JSON bias analysis:"):
        return "bias"
    if instruction.endswith("Rewritten summary:"):
        return "rewrite"
    return "progressive"


def default_reply(stage: str) -> str:
    return {
        "progressive": SUMMARY,
        "rewrite": REWRITTEN,
        "meta": json.dumps(VALID_META),
        "bias": json.dumps(VALID_BIAS),
    }[stage]


Outcome = str | BaseException


class FakeAdapter:
    """In-process adapter answering by stage.

    ``script`` maps a stage name to a list of outcomes consumed one per call
    (the last one repeats), or to a single outcome. Exceptions are raised.
    Stages without a script get ``default_reply``.
    """

    def __init__(
        self,
        script: dict[str, Outcome | list[Outcome]] | None = None,
        *,
        name: str = "gemini",
        hook: Callable[[str, PromptPair], Any] | None = None,
    ) -> None:
        self.name = name
        self.calls: list[tuple[str, PromptPair, str]] = []
        self._script = {
            stage: list(value) if isinstance(value, list) else [value]
            for stage, value in (script or {}).items()
        }
        self._hook = hook

    @property
    def stages(self) -> list[str]:
        return [stage for stage, _, _ in self.calls]

    def prompts_for(self, stage: str) -> list[PromptPair]:
        return [prompt for s, prompt, _ in self.calls if s == stage]

    async def send_prompt(self, prompt: PromptPair, api_key: str) -> str:
        stage = stage_of(prompt)
        self.calls.append((stage, prompt, api_key))
        if self._hook is not None:
            await self._hook(stage, prompt)
        queue = self._script.get(stage)
        if not queue:
            return default_reply(stage)
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def transport_error(message: str = "Gemini API error: 500 - boom") -> TransportError:
    return TransportError(message, provider="gemini", status_code=500)


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_request(
    *,
    provider: str = "gemini",
    api_key: str = "test-key",
    timeout_ms: int = 1000,
    retries: int = 0,
    **raw: Any,
) -> ExecutionRequest:
    """Build a plan from ``raw`` request fields and wrap it for execution."""
    raw.setdefault("text", "Remote work is here to stay. Managers disagree.")
    plan, _ = build_plan(raw)
    return ExecutionRequest(
        plan=plan,
        provider=provider,
        api_key=api_key,
        timeout_ms=timeout_ms,
        retries=retries,
    )
