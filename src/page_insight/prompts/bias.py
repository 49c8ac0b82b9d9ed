"""Bias and persuasion prompts: how a piece of content tries to influence.

The model is asked for a JSON object with six dimensions. ``stance``,
``emotionalTone``, ``evidenceBalance`` and ``neutralityAssessment`` are
strings; ``loadedLanguageExamples`` and ``persuasionTechniques`` are lists of
strings.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from types import MappingProxyType
from typing import Any, NamedTuple

from page_insight.core.types import PromptPair
from page_insight.prompts.meta import NO_CONTENT_INSTRUCTION


class BiasDimension(NamedTuple):
    key: str
    name: str
    description: str
    question: str
    is_list: bool = False


BIAS_DIMENSIONS: tuple[BiasDimension, ...] = (
    BiasDimension(
        "stance",
        "Stance",
        "The overall position of the content (neutral, supportive, critical)",
        "What is the overall stance? (neutral, supportive, critical, or mixed)",
    ),
    BiasDimension(
        "emotionalTone",
        "Emotional Tone",
        "The emotional register used (calm, urgent, alarmist, persuasive)",
        "What is the emotional tone? (calm, urgent, alarmist, persuasive, etc.)",
    ),
    BiasDimension(
        "loadedLanguageExamples",
        "Loaded Language Examples",
        "Specific examples of emotionally charged or biased phrasing",
        "Identify specific examples of loaded or emotionally charged language",
        is_list=True,
    ),
    BiasDimension(
        "persuasionTechniques",
        "Persuasion Techniques",
        "Rhetorical devices used to influence the reader "
        "(fear appeal, authority appeal, framing, etc.)",
        "What persuasion techniques are used? (fear appeal, authority appeal, "
        "emotional appeal, framing, selective emphasis, bandwagon, etc.)",
        is_list=True,
    ),
    BiasDimension(
        "evidenceBalance",
        "Evidence Balance",
        "Whether evidence is presented in a balanced or one-sided manner",
        "How is evidence presented? (balanced, one-sided, selective, unclear, etc.)",
    ),
    BiasDimension(
        "neutralityAssessment",
        "Neutrality Assessment",
        "Overall assessment of rhetorical balance and neutrality",
        "Overall, how neutral or balanced is this content rhetorically?",
    ),
)

SYSTEM_MESSAGE = (
    "You are a neutral rhetoric analyst specialized in identifying persuasion "
    "patterns and bias signals. "
    "Your role is to analyze HOW content attempts to influence readers, "
    "not to judge whether that influence is right or wrong. "
    "You examine emotional framing, loaded language, persuasion techniques, "
    "and evidence presentation. "
    "You maintain a neutral, analytical stance focused on rhetorical structure. "
    "You do not make moral or political judgments, only rhetorical observations."
)


@dataclasses.dataclass(frozen=True, slots=True)
class BiasPrompt(PromptPair):
    """Bias prompt pair plus an empty example of the output it asks for."""

    expected_output: Mapping[str, Any] = dataclasses.field(default_factory=dict)


def _instruction(text: str) -> str:
    questions = "".join(
        f"{i}. {dim.key}: {dim.question}"
        + (" (return as array of strings)" if dim.is_list else "")
        + "\n\n"
        for i, dim in enumerate(BIAS_DIMENSIONS, start=1)
    )
    return (
        "Perform a bias and persuasion analysis of the following content. "
        "Analyze the rhetorical strategies and persuasion patterns used.\n\n"
        "Return ONLY a valid JSON object with these fields:\n\n"
        f"{questions}"
        "Focus on rhetorical patterns, not political correctness. "
        "Maintain analytical neutrality. "
        "Do not make moral judgments about the content.\n\n"
        f"Content:\n{text}\n\n"
        "JSON bias analysis:"
    )


def build_bias_prompt(text: str) -> BiasPrompt:
    """Build the bias-scanning prompt for ``text``.

    Blank text still yields a sendable pair whose instruction says there is
    nothing to analyze.
    """
    instruction = _instruction(text) if text.strip() else NO_CONTENT_INSTRUCTION
    return BiasPrompt(
        system=SYSTEM_MESSAGE,
        instruction=instruction,
        expected_output=MappingProxyType(empty_bias_output()),
    )


def describe_bias_dimensions() -> list[str]:
    return [f"{dim.name}: {dim.description}" for dim in BIAS_DIMENSIONS]


def bias_dimension_names() -> list[str]:
    return [dim.name for dim in BIAS_DIMENSIONS]


def bias_dimension_keys() -> list[str]:
    return [dim.key for dim in BIAS_DIMENSIONS]


def get_bias_dimension(key: str) -> BiasDimension | None:
    return next((dim for dim in BIAS_DIMENSIONS if dim.key == key), None)


def empty_bias_output() -> dict[str, Any]:
    return {dim.key: [] if dim.is_list else "" for dim in BIAS_DIMENSIONS}
