"""Reading-mode rewrite prompts.

A rewrite takes an existing summary and restyles it for an audience. Every
instruction carries an ``Original summary:`` section followed by a blank line,
which is where the runners splice in the summary produced at run time.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import NamedTuple

from page_insight.core.exceptions import PromptConstructionError
from page_insight.core.types import READING_MODES, PromptPair, ReadingMode


class _ModeStrategy(NamedTuple):
    system: str
    directions: str
    description: str


_STRATEGIES: MappingProxyType[str, _ModeStrategy] = MappingProxyType(
    {
        "simple": _ModeStrategy(
            system=(
                "You are an expert educator who excels at explaining complex topics to 12-year-olds. "
                "Use simple words, short sentences, and relatable analogies. "
                "Avoid jargon and technical terms. "
                "Your goal is clarity and accessibility above all else."
            ),
            directions=(
                "Rewrite the following summary so that a 12-year-old can easily understand it. "
                "Use simple language, short sentences, and everyday examples. "
                "Avoid technical terms unless absolutely necessary, "
                "and explain them if you must use them."
            ),
            description="Easy to understand, suitable for beginners",
        ),
        "student": _ModeStrategy(
            system=(
                "You are an academic tutor who prepares students for exams. "
                "Present information in a structured, clear format with bullet points and key definitions. "
                "Your writing is organized, concise, and exam-friendly. "
                "Include important terminology with brief explanations."
            ),
            directions=(
                "Rewrite the following summary in a structured, student-friendly format. "
                "Use bullet points for key concepts, include definitions for important terms, "
                "and organize information logically for study purposes."
            ),
            description="Structured format, ideal for studying",
        ),
        "professional": _ModeStrategy(
            system=(
                "You are a senior executive assistant who writes concise business communications. "
                "Your style is neutral, direct, and efficient. "
                "You deliver executive summaries that respect the reader's time. "
                "Maintain a formal but accessible tone."
            ),
            directions=(
                "Rewrite the following summary as a professional executive brief. "
                "Be concise, neutral, and direct. "
                "Focus on key insights and actionable information. "
                "Use business-appropriate language."
            ),
            description="Concise executive summary style",
        ),
        "expert": _ModeStrategy(
            system=(
                "You are a domain expert writing for other experts. "
                "Use technical terminology freely and assume deep domain knowledge. "
                "Your writing is dense, precise, and information-rich. "
                "Prioritize accuracy and technical depth over accessibility."
            ),
            directions=(
                "Rewrite the following summary for an expert audience. "
                "Use technical language, assume domain expertise, "
                "and maximize information density. "
                "Include relevant technical details and precise terminology."
            ),
            description="Technical and information-dense",
        ),
        "casual": _ModeStrategy(
            system=(
                "You are a friendly storyteller who makes information enjoyable and easy to digest. "
                "Your tone is conversational, warm, and approachable. "
                "You explain things like you're chatting with a friend over coffee. "
                "Keep it light, engaging, and fun."
            ),
            directions=(
                "Rewrite the following summary in a casual, conversational tone. "
                "Imagine you're explaining this to a friend in a relaxed setting. "
                "Keep it friendly, approachable, and easy to read."
            ),
            description="Friendly and conversational tone",
        ),
    }
)


def _strategy_for(mode: str) -> _ModeStrategy:
    try:
        return _STRATEGIES[mode]
    except (KeyError, TypeError):
        raise PromptConstructionError(f"Unknown reading mode: {mode}") from None


def build_rewrite_prompt(summary: str, mode: ReadingMode) -> PromptPair:
    """Build the rewrite prompt restyling ``summary`` for ``mode``.

    At plan time ``summary`` is the page text; the runners replace it with
    the progressive summary before sending.

    Raises:
        PromptConstructionError: If ``mode`` is not a known reading mode.
    """
    strategy = _strategy_for(mode)
    return PromptPair(
        system=strategy.system,
        instruction=(
            f"{strategy.directions}\n\n"
            f"Original summary:\n{summary}\n\n"
            "Rewritten summary:"
        ),
    )


def list_modes() -> list[str]:
    return list(READING_MODES)


def describe_mode(mode: str) -> str:
    strategy = _STRATEGIES.get(mode) if isinstance(mode, str) else None
    return strategy.description if strategy else "Unknown mode"


def is_valid_mode(mode: object) -> bool:
    return isinstance(mode, str) and mode in _STRATEGIES
