"""Shape validation for meta and bias analysis outputs.

Models are checked with pydantic in strict mode so that, for example, a
number is not accepted where a string is expected. Extra keys are allowed;
the parsed object is passed through unchanged when it validates.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

_CONFIG = ConfigDict(strict=True, extra="allow", populate_by_name=True)


class MetaOutput(BaseModel):
    """Meta-analysis result as returned by the model."""

    model_config = _CONFIG

    core_argument: str = Field(alias="coreArgument")
    author_intent: str = Field(alias="authorIntent")
    stakes: str
    persuasion_signals: list[Any] = Field(alias="persuasionSignals")
    missing_perspectives: list[Any] = Field(alias="missingPerspectives")


class BiasOutput(BaseModel):
    """Bias-analysis result as returned by the model."""

    model_config = _CONFIG

    stance: str
    emotional_tone: str = Field(alias="emotionalTone")
    loaded_language_examples: list[str] = Field(alias="loadedLanguageExamples")
    persuasion_techniques: list[str] = Field(alias="persuasionTechniques")
    evidence_balance: str = Field(alias="evidenceBalance")
    neutrality_assessment: str = Field(alias="neutralityAssessment")


def _validate[M: BaseModel](model: type[M], obj: object) -> M | None:
    if not isinstance(obj, dict):
        return None
    try:
        return model.model_validate(obj)
    except ValidationError:
        return None


def parse_meta_output(obj: object) -> MetaOutput | None:
    return _validate(MetaOutput, obj)


def parse_bias_output(obj: object) -> BiasOutput | None:
    return _validate(BiasOutput, obj)


def is_valid_meta_output(obj: object) -> bool:
    """True when ``obj`` has every meta dimension with the right type."""
    return parse_meta_output(obj) is not None


def is_valid_bias_output(obj: object) -> bool:
    """True when ``obj`` has every bias dimension with the right type."""
    return parse_bias_output(obj) is not None
