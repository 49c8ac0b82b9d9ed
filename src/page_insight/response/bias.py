"""Bias categorization for validated bias analyses."""

from __future__ import annotations

from collections.abc import Mapping
import re
from types import MappingProxyType
from typing import Any

from page_insight.core.types import BiasCategory
from page_insight.response.validation import BiasOutput

NEUTRAL_KEYWORDS = ("neutral", "balanced", "objective", "fair")
EXTREME_KEYWORDS = ("very", "extremely", "heavily", "strongly", "one-sided")
HEDGING_KEYWORDS = ("somewhat", "leans", "tends", "slight")

# More than this many loaded-language examples (with persuasion present) is high.
LOADED_LANGUAGE_HIGH_THRESHOLD = 3

BIAS_SCORES: Mapping[str, float] = MappingProxyType(
    {"low": 0.15, "moderate": 0.5, "high": 0.9, "unclear": 0.5}
)


def _has_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    return any(re.search(rf"\b{re.escape(kw)}\b", text) for kw in keywords)


def categorize_bias(output: Mapping[str, Any] | BiasOutput) -> BiasCategory:
    """Classify a bias analysis as low, moderate, high or unclear.

    The neutrality assessment is scanned for keywords in priority order
    (neutral, then extreme, then hedging language). Without a keyword hit the
    amount of loaded language decides, provided persuasion techniques were
    also found.
    """
    if isinstance(output, BiasOutput):
        output = output.model_dump(by_alias=True)
    stance = output.get("stance") or ""
    assessment = output.get("neutralityAssessment") or ""
    if not stance or not assessment:
        return "unclear"

    assessment = str(assessment).lower()
    if _has_keyword(assessment, NEUTRAL_KEYWORDS):
        return "low"
    if _has_keyword(assessment, EXTREME_KEYWORDS):
        return "high"
    if _has_keyword(assessment, HEDGING_KEYWORDS):
        return "moderate"

    loaded = output.get("loadedLanguageExamples") or []
    techniques = output.get("persuasionTechniques") or []
    if loaded and techniques:
        return "high" if len(loaded) > LOADED_LANGUAGE_HIGH_THRESHOLD else "moderate"
    return "unclear"


def bias_score(category: str) -> float:
    """Map a bias category to a numeric score in ``[0, 1]``."""
    return BIAS_SCORES.get(category, BIAS_SCORES["unclear"])
