"""Meta-analysis prompts: why a piece of content exists.

The model is asked for a JSON object with five dimensions. Three are strings
(``coreArgument``, ``authorIntent``, ``stakes``) and two are lists of strings
(``persuasionSignals``, ``missingPerspectives``).
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from types import MappingProxyType
from typing import Any, NamedTuple

from page_insight.core.types import PromptPair

NO_CONTENT_INSTRUCTION = "No content provided for analysis."


class MetaDimension(NamedTuple):
    key: str
    name: str
    description: str
    question: str
    is_list: bool = False


META_DIMENSIONS: tuple[MetaDimension, ...] = (
    MetaDimension(
        "coreArgument",
        "Core Argument",
        "The central claim or thesis the content is making",
        "What is the single most important claim or argument being made?",
    ),
    MetaDimension(
        "authorIntent",
        "Author Intent",
        "What the author wants the reader to believe, feel, or do",
        "What does the author want the reader to think, believe, or do after reading this?",
    ),
    MetaDimension(
        "stakes",
        "Stakes",
        "Why this content matters and what's at stake",
        "Why does this matter? What are the stakes or consequences discussed?",
    ),
    MetaDimension(
        "persuasionSignals",
        "Persuasion Signals",
        "Techniques used to influence the reader (emotional language, framing, selective facts)",
        "What persuasion techniques are used? "
        "(emotional language, framing, selective facts, calls to action, etc.)",
        is_list=True,
    ),
    MetaDimension(
        "missingPerspectives",
        "Missing Perspectives",
        "Viewpoints, counterarguments, or perspectives not represented",
        "What viewpoints, counterarguments, or perspectives are not represented or addressed?",
        is_list=True,
    ),
)

SYSTEM_MESSAGE = (
    "You are a critical analyst specialized in meta-analysis of written content. "
    "Your role is to analyze WHY content exists, not just what it says. "
    "You examine author intent, persuasion techniques, framing, and missing perspectives. "
    "You maintain a neutral, analytical stance without moral judgment. "
    "Your analysis is objective, structured, and reasoning-based."
)

_OUTPUT_EXAMPLE = (
    "{\n"
    '  "coreArgument": "The main claim...",\n'
    '  "authorIntent": "To persuade readers...",\n'
    '  "stakes": "The consequences...",\n'
    '  "persuasionSignals": ["emotional language", "selective facts"],\n'
    '  "missingPerspectives": ["counterargument A", "perspective B"]\n'
    "}"
)


@dataclasses.dataclass(frozen=True, slots=True)
class MetaPrompt(PromptPair):
    """Meta prompt pair plus an empty example of the output it asks for."""

    expected_output: Mapping[str, Any] = dataclasses.field(default_factory=dict)


def _instruction(text: str) -> str:
    fields = "".join(
        f"{i}. {dim.key}: {dim.question}"
        + (" (return as array of strings)" if dim.is_list else "")
        + "\n"
        for i, dim in enumerate(META_DIMENSIONS, start=1)
    )
    return (
        "Perform a meta-analysis of the following content. "
        "Analyze WHY this content exists and what it's trying to achieve.\n\n"
        "Return ONLY a valid JSON object with these fields:\n\n"
        f"{fields}\n"
        "Maintain neutrality and analytical rigor. "
        "Do not make moral judgments. "
        "Focus on identifying patterns, techniques, and structural elements.\n\n"
        f"Output format example:\n{_OUTPUT_EXAMPLE}\n\n"
        f"Content:\n{text}\n\n"
        "JSON meta-analysis:"
    )


def build_meta_prompt(text: str) -> MetaPrompt:
    """Build the meta-analysis prompt for ``text``.

    Blank text still yields a sendable pair whose instruction says there is
    nothing to analyze.
    """
    instruction = _instruction(text) if text.strip() else NO_CONTENT_INSTRUCTION
    return MetaPrompt(
        system=SYSTEM_MESSAGE,
        instruction=instruction,
        expected_output=MappingProxyType(empty_meta_output()),
    )


def describe_meta_dimensions() -> list[str]:
    return [f"{dim.name}: {dim.description}" for dim in META_DIMENSIONS]


def meta_dimension_names() -> list[str]:
    return [dim.name for dim in META_DIMENSIONS]


def meta_dimension_keys() -> list[str]:
    return [dim.key for dim in META_DIMENSIONS]


def get_meta_dimension(key: str) -> MetaDimension | None:
    return next((dim for dim in META_DIMENSIONS if dim.key == key), None)


def empty_meta_output() -> dict[str, Any]:
    return {dim.key: [] if dim.is_list else "" for dim in META_DIMENSIONS}
