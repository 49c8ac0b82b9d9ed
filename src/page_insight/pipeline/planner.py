"""Plan building: from an untrusted request to the prompts for each stage.

The pipeline is a fixed, ordered tuple of stage descriptors. The plan builder
sanitizes the request (defaulting invalid fields with a warning each), then
walks the descriptors once: every enabled stage contributes its prompt pair
to the plan. A builder that raises is isolated; its stage is left out of the
plan and a warning names it, while the remaining stages still run.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from page_insight.core.types import (
    BIAS_KEY,
    INTENT_KEY,
    META_KEY,
    PROGRESSIVE_KEY,
    REWRITE_KEY,
    PipelineRequest,
    Plan,
    PlanResult,
    PromptPair,
)
from page_insight.prompts.bias import build_bias_prompt
from page_insight.prompts.intent import build_intent_prompt, is_valid_intent
from page_insight.prompts.meta import build_meta_prompt
from page_insight.prompts.modes import build_rewrite_prompt, is_valid_mode
from page_insight.prompts.progressive import build_progressive_prompt, is_valid_level
from page_insight.telemetry import TelemetryContext

if TYPE_CHECKING:
    from page_insight.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

_DEFAULTS = PipelineRequest()


@dataclasses.dataclass(frozen=True, slots=True)
class StageDescriptor:
    """One entry of the declarative pipeline."""

    name: str
    description: str
    stage: str
    required: bool
    plan_key: str
    enabled: Callable[[PipelineRequest], bool]
    build: Callable[[PipelineRequest], PromptPair]


PIPELINE_STAGES: tuple[StageDescriptor, ...] = (
    StageDescriptor(
        name="Intent Shaping",
        description=(
            "Analyze content based on reading intent (research, exam, decision, etc.)"
        ),
        stage="intent",
        required=True,
        plan_key=INTENT_KEY,
        enabled=lambda request: True,
        build=lambda request: build_intent_prompt(request.text, request.intent),
    ),
    StageDescriptor(
        name="Progressive Compression",
        description="Generate summary at specified compression level (1-3)",
        stage="progressive",
        required=True,
        plan_key=PROGRESSIVE_KEY,
        enabled=lambda request: True,
        build=lambda request: build_progressive_prompt(request.text, request.level),
    ),
    StageDescriptor(
        name="Reading Mode Rewrite",
        description=(
            "Rewrite summary for reading level "
            "(simple, student, professional, expert, casual)"
        ),
        stage="mode",
        required=True,
        plan_key=REWRITE_KEY,
        enabled=lambda request: True,
        build=lambda request: build_rewrite_prompt(request.text, request.mode),
    ),
    StageDescriptor(
        name="Meta Analysis",
        description="Analyze author intent, core argument, and persuasion signals",
        stage="meta",
        required=False,
        plan_key=META_KEY,
        enabled=lambda request: request.enable_meta,
        build=lambda request: build_meta_prompt(request.text),
    ),
    StageDescriptor(
        name="Bias Scanning",
        description="Detect rhetorical bias and stance signals",
        stage="bias",
        required=False,
        plan_key=BIAS_KEY,
        enabled=lambda request: request.enable_bias,
        build=lambda request: build_bias_prompt(request.text),
    ),
)

# --- Request sanitization ---

_MISSING = object()


def _lookup(raw: Mapping[str, Any], *names: str) -> Any:
    """Return the first present, non-None value among ``names``."""
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return _MISSING


def sanitize_request(raw: object) -> tuple[PipelineRequest, list[str]]:
    """Turn an untrusted request into a legal ``PipelineRequest``.

    Accepts a mapping keyed by snake_case names or by the camelCase wire
    names (``enableMeta``, ``enableBias``). Each field is defaulted
    independently; a field that is present but invalid adds one warning,
    while an absent (or ``None``) field is defaulted silently.
    """
    if isinstance(raw, PipelineRequest):
        return raw, []
    warnings: list[str] = []
    if raw is None:
        raw = {}
    elif not isinstance(raw, Mapping):
        warnings.append(
            f"Invalid request of type {type(raw).__name__}: defaulted to empty request"
        )
        raw = {}

    text = _lookup(raw, "text")
    if text is _MISSING:
        text = _DEFAULTS.text
    elif not isinstance(text, str):
        warnings.append("Invalid text: defaulted to empty string")
        text = _DEFAULTS.text

    intent = _lookup(raw, "intent")
    if intent is _MISSING:
        intent = _DEFAULTS.intent
    elif not is_valid_intent(intent):
        warnings.append(
            f"Invalid intent '{intent}': defaulted to '{_DEFAULTS.intent}'"
        )
        intent = _DEFAULTS.intent

    mode = _lookup(raw, "mode")
    if mode is _MISSING:
        mode = _DEFAULTS.mode
    elif not is_valid_mode(mode):
        warnings.append(f"Invalid mode '{mode}': defaulted to '{_DEFAULTS.mode}'")
        mode = _DEFAULTS.mode

    level = _lookup(raw, "level")
    if level is _MISSING:
        level = _DEFAULTS.level
    elif not is_valid_level(level):
        warnings.append(f"Invalid level '{level}': defaulted to {_DEFAULTS.level}")
        level = _DEFAULTS.level

    flags: dict[str, bool] = {}
    for field_name, wire_name in (
        ("enable_meta", "enableMeta"),
        ("enable_bias", "enableBias"),
    ):
        default = getattr(_DEFAULTS, field_name)
        value = _lookup(raw, field_name, wire_name)
        if value is _MISSING:
            value = default
        elif not isinstance(value, bool):
            warnings.append(
                f"Invalid {wire_name}: defaulted to {str(default).lower()}"
            )
            value = default
        flags[field_name] = value

    request = PipelineRequest(
        text=text,
        intent=intent,
        mode=mode,
        level=level,
        enable_meta=flags["enable_meta"],
        enable_bias=flags["enable_bias"],
    )
    return request, warnings


class PlanBuilder:
    """Builds a ``Plan`` by walking a tuple of stage descriptors.

    The descriptor tuple is injectable so that alternative pipelines (or
    failing builders in tests) can be plugged in without touching the loop.
    """

    def __init__(
        self,
        stages: tuple[StageDescriptor, ...] = PIPELINE_STAGES,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize with a stage tuple and optional telemetry."""
        self._stages = stages
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    @property
    def stages(self) -> tuple[StageDescriptor, ...]:
        return self._stages

    def build(self, raw: object) -> PlanResult:
        """Sanitize ``raw`` and build the plan. Never raises."""
        request, warnings = sanitize_request(raw)
        prompts: dict[str, PromptPair] = {}
        with self._telemetry("planner.build") as tele:
            for descriptor in self._stages:
                if not descriptor.enabled(request):
                    continue
                try:
                    prompts[descriptor.plan_key] = descriptor.build(request)
                except Exception as e:
                    log.warning("%s engine failed: %s", descriptor.name, e)
                    warnings.append(f"{descriptor.name} engine failed: {e}")
                    tele.count("planner.stage_failure", stage=descriptor.stage)
            tele.gauge("planner.stages_planned", len(prompts))
        log.debug(
            "Built plan with stages %s (%d warnings)", list(prompts), len(warnings)
        )
        return PlanResult(plan=Plan(prompts), warnings=warnings)


_DEFAULT_BUILDER = PlanBuilder()


def build_plan(raw: object) -> PlanResult:
    """Build a plan from an untrusted request using the default pipeline."""
    return _DEFAULT_BUILDER.build(raw)


# --- Introspection helpers ---


def describe_pipeline() -> list[dict[str, Any]]:
    """Describe every stage: name, description, whether required, stage tag."""
    return [
        {
            "name": d.name,
            "description": d.description,
            "required": d.required,
            "stage": d.stage,
        }
        for d in PIPELINE_STAGES
    ]


def get_pipeline_stages() -> list[str]:
    return [d.name for d in PIPELINE_STAGES]


def get_required_stages() -> list[str]:
    return [d.name for d in PIPELINE_STAGES if d.required]


def get_optional_stages() -> list[str]:
    return [d.name for d in PIPELINE_STAGES if not d.required]


def count_enabled_stages(request: object) -> int:
    sanitized, _ = sanitize_request(request)
    return sum(1 for d in PIPELINE_STAGES if d.enabled(sanitized))


def is_valid_request(raw: object) -> bool:
    """Strict check: every field present, typed and legal. No defaulting."""
    if isinstance(raw, PipelineRequest):
        return True
    if not isinstance(raw, Mapping):
        return False
    text = raw.get("text")
    intent = raw.get("intent")
    mode = raw.get("mode")
    level = raw.get("level")
    enable_meta = raw.get("enable_meta", raw.get("enableMeta"))
    enable_bias = raw.get("enable_bias", raw.get("enableBias"))
    return (
        isinstance(text, str)
        and is_valid_intent(intent)
        and is_valid_mode(mode)
        and is_valid_level(level)
        and isinstance(enable_meta, bool)
        and isinstance(enable_bias, bool)
    )


def default_request() -> PipelineRequest:
    return PipelineRequest()


def minimal_request(text: str) -> PipelineRequest:
    return dataclasses.replace(_DEFAULTS, text=text)


def full_request(text: str) -> PipelineRequest:
    return dataclasses.replace(_DEFAULTS, text=text, enable_meta=True, enable_bias=True)
