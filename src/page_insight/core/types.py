"""Core data types that flow through the pipeline.

This module defines the immutable data structures that represent a request as
it moves from the plan builder to the runners: the sanitized request, the
prompt pairs and the plan that bundles them, the execution request, and the
two output shapes (an aggregated result or a sequence of stream events).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import dataclasses
from types import MappingProxyType
import typing

# --- Minimal guard helpers (clarity > boilerplate) ---

T = typing.TypeVar("T")


def _freeze_mapping(m: Mapping[str, T] | None) -> Mapping[str, T] | None:
    """Return an immutable mapping view or None."""
    if m is None or isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad ---
# Stage outcomes are carried as data inside the runners so that a failed stage
# is recorded and the pipeline moves on instead of unwinding.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful stage outcome."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed stage outcome, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Enumerations ---

ReadingIntent = typing.Literal[
    "research", "exam", "decision", "casual", "news", "learning"
]
ReadingMode = typing.Literal["simple", "student", "professional", "expert", "casual"]
SummaryLevel = typing.Literal[1, 2, 3]
ProviderName = typing.Literal["gemini", "openai"]
StreamStage = typing.Literal["progressive", "rewrite", "meta", "bias", "done", "error"]
BiasCategory = typing.Literal["low", "moderate", "high", "unclear"]

READING_INTENTS: tuple[str, ...] = typing.get_args(ReadingIntent)
READING_MODES: tuple[str, ...] = typing.get_args(ReadingMode)
SUMMARY_LEVELS: tuple[int, ...] = typing.get_args(SummaryLevel)
PROVIDER_NAMES: tuple[str, ...] = typing.get_args(ProviderName)
STREAM_STAGES: tuple[str, ...] = typing.get_args(StreamStage)

# Plan keys keep the wire names used by callers and UIs.
INTENT_KEY = "intentPrompt"
PROGRESSIVE_KEY = "progressivePrompt"
REWRITE_KEY = "rewritePrompt"
META_KEY = "metaPrompt"
BIAS_KEY = "biasPrompt"
PLAN_KEYS: tuple[str, ...] = (
    INTENT_KEY,
    PROGRESSIVE_KEY,
    REWRITE_KEY,
    META_KEY,
    BIAS_KEY,
)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_RETRIES = 2

# --- Request ---


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineRequest:
    """A sanitized pipeline request.

    Instances are always legal: the plan builder produces them from untrusted
    input by defaulting invalid fields, and direct construction validates.
    """

    text: str = ""
    intent: ReadingIntent = "casual"
    mode: ReadingMode = "professional"
    level: SummaryLevel = 2
    enable_meta: bool = False
    enable_bias: bool = False

    def __post_init__(self) -> None:
        """Validate enum membership and field types."""
        _require(
            condition=isinstance(self.text, str),
            message="must be str",
            field_name="text",
            exc=TypeError,
        )
        _require(
            condition=self.intent in READING_INTENTS,
            message=f"must be one of {list(READING_INTENTS)}, got {self.intent!r}",
            field_name="intent",
        )
        _require(
            condition=self.mode in READING_MODES,
            message=f"must be one of {list(READING_MODES)}, got {self.mode!r}",
            field_name="mode",
        )
        _require(
            condition=not isinstance(self.level, bool)
            and self.level in SUMMARY_LEVELS,
            message=f"must be one of {list(SUMMARY_LEVELS)}, got {self.level!r}",
            field_name="level",
        )
        for name in ("enable_meta", "enable_bias"):
            _require(
                condition=isinstance(getattr(self, name), bool),
                message="must be bool",
                field_name=name,
                exc=TypeError,
            )


# --- Prompts and plans ---


@dataclasses.dataclass(frozen=True, slots=True)
class PromptPair:
    """A system message plus an instruction, sent together as one provider call."""

    system: str
    instruction: str

    def __post_init__(self) -> None:
        """Validate PromptPair invariants."""
        _require(
            condition=isinstance(self.system, str),
            message="must be str",
            field_name="system",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.instruction, str),
            message="must be str",
            field_name="instruction",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True, eq=False)
class Plan(Mapping[str, PromptPair]):
    """The concrete prompts for one request, keyed by stage.

    A stage that was disabled or whose prompt could not be built is absent
    from the mapping rather than mapped to ``None``.
    """

    prompts: Mapping[str, PromptPair] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate keys and values, then freeze the mapping."""
        _require(
            condition=isinstance(self.prompts, Mapping),
            message="must be a mapping",
            field_name="prompts",
            exc=TypeError,
        )
        for key, value in self.prompts.items():
            _require(
                condition=key in PLAN_KEYS,
                message=f"unknown plan key {key!r}; expected one of {list(PLAN_KEYS)}",
                field_name="prompts",
            )
            _require(
                condition=isinstance(value, PromptPair),
                message=f"{key} must be a PromptPair, got {type(value).__name__}",
                field_name="prompts",
                exc=TypeError,
            )
        object.__setattr__(self, "prompts", _freeze_mapping(self.prompts))

    def __getitem__(self, key: str) -> PromptPair:
        return self.prompts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.prompts)

    def __len__(self) -> int:
        return len(self.prompts)

    def __repr__(self) -> str:
        return f"Plan(keys={list(self.prompts)!r})"

    @property
    def intent(self) -> PromptPair | None:
        return self.prompts.get(INTENT_KEY)

    @property
    def progressive(self) -> PromptPair | None:
        return self.prompts.get(PROGRESSIVE_KEY)

    @property
    def rewrite(self) -> PromptPair | None:
        return self.prompts.get(REWRITE_KEY)

    @property
    def meta(self) -> PromptPair | None:
        return self.prompts.get(META_KEY)

    @property
    def bias(self) -> PromptPair | None:
        return self.prompts.get(BIAS_KEY)


class PlanResult(typing.NamedTuple):
    """A plan plus the warnings collected while sanitizing and building it."""

    plan: Plan
    warnings: list[str]


# --- Execution ---


@dataclasses.dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Everything a runner needs to execute one plan.

    ``provider`` and ``api_key`` are kept as given; the runners decide whether
    they are usable and report a single warning when they are not.
    """

    plan: Plan
    provider: str
    api_key: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES

    def __post_init__(self) -> None:
        """Validate ExecutionRequest invariants."""
        _require(
            condition=isinstance(self.plan, Plan),
            message="must be a Plan",
            field_name="plan",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.provider, str),
            message="must be str",
            field_name="provider",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.api_key, str),
            message="must be str",
            field_name="api_key",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.timeout_ms, int)
            and not isinstance(self.timeout_ms, bool)
            and self.timeout_ms > 0,
            message=f"must be an int > 0, got {self.timeout_ms!r}",
            field_name="timeout_ms",
        )
        _require(
            condition=isinstance(self.retries, int)
            and not isinstance(self.retries, bool)
            and self.retries >= 0,
            message=f"must be an int >= 0, got {self.retries!r}",
            field_name="retries",
        )

    def __repr__(self) -> str:
        """Repr with redacted API key for safe debugging."""
        api_key_display = "[REDACTED]" if self.api_key else ""
        return (
            f"ExecutionRequest(plan={self.plan!r}, provider={self.provider!r}, "
            f"api_key={api_key_display!r}, timeout_ms={self.timeout_ms!r}, "
            f"retries={self.retries!r})"
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Aggregated output of a batch run.

    ``summary`` is empty on total failure. ``meta`` and ``bias`` are ``None``
    when their stage was not planned or failed.
    """

    summary: str = ""
    meta: typing.Any = None
    bias: typing.Any = None
    warnings: list[str] = dataclasses.field(default_factory=list)

    def to_dict(self) -> dict[str, typing.Any]:
        """Return a plain dict, omitting facets that were not produced."""
        out: dict[str, typing.Any] = {"summary": self.summary}
        if self.meta is not None:
            out["meta"] = self.meta
        if self.bias is not None:
            out["bias"] = self.bias
        out["warnings"] = list(self.warnings)
        return out


@dataclasses.dataclass(frozen=True, slots=True)
class StreamEvent:
    """One element of the streaming runner's event sequence."""

    stage: StreamStage
    data: typing.Any = None
    warning: str | None = None

    def __post_init__(self) -> None:
        """Validate the stage tag."""
        _require(
            condition=self.stage in STREAM_STAGES,
            message=f"must be one of {list(STREAM_STAGES)}, got {self.stage!r}",
            field_name="stage",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        """Return a plain dict, omitting unset fields."""
        out: dict[str, typing.Any] = {"stage": self.stage}
        if self.data is not None:
            out["data"] = self.data
        if self.warning is not None:
            out["warning"] = self.warning
        return out
