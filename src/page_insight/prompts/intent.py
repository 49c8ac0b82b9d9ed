"""Intent-shaping prompts.

Each reading intent (research, exam, decision, ...) maps to a strategy: a
system message describing the assistant's role, an instruction template that
embeds the page text, and the list of aspects the summary should focus on.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from types import MappingProxyType
from typing import NamedTuple

from page_insight.core.exceptions import PromptConstructionError
from page_insight.core.types import READING_INTENTS, PromptPair, ReadingIntent


@dataclasses.dataclass(frozen=True, slots=True)
class IntentPrompt(PromptPair):
    """Intent prompt pair plus the aspects it asks the model to focus on."""

    focus: tuple[str, ...] = ()


class _IntentStrategy(NamedTuple):
    system: str
    template: Callable[[str], str]
    focus: tuple[str, ...]
    description: str


def _instruction(opening: str, points: tuple[str, ...], closing: str, label: str):
    bullets = "".join(f"- {p}\n" for p in points)

    def render(text: str) -> str:
        return (
            f"{opening} Focus on:\n{bullets}\n{closing}\n\n"
            f"Content:\n{text}\n\n{label} summary:"
        )

    return render


_STRATEGIES: MappingProxyType[str, _IntentStrategy] = MappingProxyType(
    {
        "research": _IntentStrategy(
            system=(
                "You are a research assistant helping an academic or professional researcher. "
                "Your goal is to extract arguments, evidence, claims, and sources from content. "
                "Prioritize factual accuracy, logical structure, and citation-worthy information. "
                "Present information in a way that supports rigorous analysis."
            ),
            template=_instruction(
                "Summarize the following content for research purposes.",
                (
                    "Main arguments and claims",
                    "Supporting evidence and data",
                    "Key sources and references",
                    "Methodology or approach (if applicable)",
                    "Conclusions and implications",
                ),
                "Present information objectively and systematically.",
                "Research",
            ),
            focus=(
                "arguments",
                "evidence",
                "claims",
                "sources",
                "methodology",
                "conclusions",
            ),
            description="Extract arguments, evidence, and sources for analysis",
        ),
        "exam": _IntentStrategy(
            system=(
                "You are a study coach helping a student prepare for an exam. "
                "Your goal is to extract definitions, key facts, and memorizable points. "
                "Structure information clearly with emphasis on what's testable. "
                "Make content easy to review and retain."
            ),
            template=_instruction(
                "Summarize the following content for exam preparation.",
                (
                    "Key definitions and terminology",
                    "Important facts and concepts",
                    "Memorizable points",
                    "Structured learning points",
                    "Relationships between concepts",
                ),
                "Make it clear, organized, and study-friendly.",
                "Exam prep",
            ),
            focus=("definitions", "facts", "concepts", "terminology", "key points"),
            description="Structured study material with definitions and key facts",
        ),
        "decision": _IntentStrategy(
            system=(
                "You are a strategic advisor helping someone make an informed decision. "
                "Your goal is to extract pros and cons, risks, benefits, and recommendations. "
                "Present information in a way that supports clear decision-making. "
                "Be balanced, objective, and action-oriented."
            ),
            template=_instruction(
                "Summarize the following content to support decision-making.",
                (
                    "Pros and cons",
                    "Risks and benefits",
                    "Key trade-offs",
                    "Recommendations or suggested actions",
                    "Critical factors to consider",
                ),
                "Present information clearly to enable informed choices.",
                "Decision",
            ),
            focus=("pros", "cons", "risks", "benefits", "recommendations", "trade-offs"),
            description="Pros, cons, risks, and recommendations for choices",
        ),
        "casual": _IntentStrategy(
            system=(
                "You are a friendly reader helping someone casually browse content. "
                "Your goal is to provide a light, conversational summary that's easy to digest. "
                "Keep it simple, engaging, and quick to read. "
                "No need for deep analysis, just the gist."
            ),
            template=_instruction(
                "Summarize the following content in a casual, easy-to-read way.",
                ("Main idea", "Interesting points", "What makes it worth knowing"),
                "Keep it light, conversational, and quick to scan.",
                "Casual",
            ),
            focus=("main idea", "highlights", "key takeaways"),
            description="Light, conversational summary for quick reading",
        ),
        "news": _IntentStrategy(
            system=(
                "You are a news analyst helping someone stay informed on current events. "
                "Your goal is to extract key events, timelines, actors, and developments. "
                "Present information like a news brief: who, what, when, where, why. "
                "Be factual, chronological, and context-aware."
            ),
            template=_instruction(
                "Summarize the following content as a news brief.",
                (
                    "Key events and developments",
                    "Timeline (when things happened)",
                    "Main actors or entities involved",
                    "Context and background",
                    "Current status or outcome",
                ),
                "Present it like a concise news digest.",
                "News",
            ),
            focus=("events", "timeline", "actors", "context", "developments"),
            description="Key events, timeline, and actors in news-brief format",
        ),
        "learning": _IntentStrategy(
            system=(
                "You are a patient educator helping someone learn and understand new concepts. "
                "Your goal is to explain ideas clearly with step-by-step clarity. "
                "Prioritize explanations, examples, and conceptual understanding. "
                "Make complex topics accessible and build knowledge progressively."
            ),
            template=_instruction(
                "Summarize the following content for learning purposes.",
                (
                    "Core concepts and ideas",
                    "Clear explanations",
                    "How things work (step-by-step if applicable)",
                    "Examples or analogies",
                    "Building blocks for understanding",
                ),
                "Make it educational, clear, and easy to grasp.",
                "Learning",
            ),
            focus=("concepts", "explanations", "examples", "understanding", "clarity"),
            description="Clear explanations and concepts for understanding",
        ),
    }
)

# Checked in order; the first keyword group that matches wins.
_CONTEXT_KEYWORDS: tuple[tuple[ReadingIntent, tuple[str, ...]], ...] = (
    ("exam", ("study", "test", "exam")),
    ("research", ("research", "paper", "academic")),
    ("decision", ("decide", "choice", "compare")),
    ("learning", ("learn", "understand", "explain")),
    ("news", ("news", "breaking", "update")),
)


def _strategy_for(intent: str) -> _IntentStrategy:
    try:
        return _STRATEGIES[intent]
    except (KeyError, TypeError):
        raise PromptConstructionError(f"Invalid reading intent: {intent}") from None


def build_intent_prompt(text: str, intent: ReadingIntent) -> IntentPrompt:
    """Build the intent-shaping prompt for ``text``.

    Raises:
        PromptConstructionError: If ``intent`` is not a known reading intent.
    """
    strategy = _strategy_for(intent)
    return IntentPrompt(
        system=strategy.system,
        instruction=strategy.template(text),
        focus=strategy.focus,
    )


def list_intents() -> list[str]:
    return list(READING_INTENTS)


def describe_intent(intent: ReadingIntent) -> str:
    return _strategy_for(intent).description


def is_valid_intent(intent: object) -> bool:
    return isinstance(intent, str) and intent in _STRATEGIES


def get_intent_focus(intent: str) -> list[str]:
    """Return the focus aspects for ``intent``, or an empty list if unknown."""
    strategy = _STRATEGIES.get(intent) if isinstance(intent, str) else None
    return list(strategy.focus) if strategy else []


def suggest_intent_for_context(context: str) -> ReadingIntent:
    """Guess a reading intent from free-form context such as a page title."""
    lowered = context.lower()
    for intent, keywords in _CONTEXT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return "casual"
