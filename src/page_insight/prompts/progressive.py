"""Progressive compression prompts.

Three summary levels trade length for detail: a single sentence (1), a few
bullets (2), or a five-section structured summary (3).
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from types import MappingProxyType
from typing import Literal, NamedTuple

from page_insight.core.exceptions import PromptConstructionError
from page_insight.core.types import SUMMARY_LEVELS, PromptPair, SummaryLevel

ExpectedStructure = Literal["sentence", "bullets", "structured"]


@dataclasses.dataclass(frozen=True, slots=True)
class ProgressivePrompt(PromptPair):
    """Progressive prompt pair plus the output shape the level asks for."""

    expected_structure: ExpectedStructure = "bullets"


class _LevelStrategy(NamedTuple):
    system: str
    template: Callable[[str], str]
    expected_structure: ExpectedStructure
    description: str


def _one_sentence(text: str) -> str:
    return (
        "Summarize the following content in EXACTLY ONE SENTENCE. "
        "Capture only the core idea. "
        "Be extremely concise. "
        "Maximum 20 words. "
        "No preamble, no introduction, just the summary sentence.\n\n"
        f"Content:\n{text}\n\n"
        "One-sentence summary:"
    )


def _bullets(text: str) -> str:
    return (
        "Summarize the following content as 3-5 bullet points. "
        "Each bullet should capture one key idea. "
        "Be concise and direct. "
        "No introduction or conclusion, just the bullets. "
        "Use bullet point format (• or -).\n\n"
        f"Content:\n{text}\n\n"
        "Bullet summary:"
    )


def _structured(text: str) -> str:
    return (
        "Create a comprehensive structured summary using EXACTLY these 5 sections in this order:\n\n"
        "TL;DR (Short Summary)\n"
        "One clear sentence capturing the core message\n\n"
        "Key Points\n"
        "• 5-8 detailed bullet points covering main ideas and arguments\n\n"
        "Quantifiables (Date/Number)\n"
        "• List all dates, numbers, statistics, percentages, or measurable data mentioned\n"
        "• If none present, write 'None mentioned'\n\n"
        "Aftermath\n"
        "• Describe the consequences, results, or what happened as a result\n"
        "• If this is predictive/future content, describe expected outcomes\n\n"
        "Influence of this\n"
        "• Explain the broader impact, significance, or implications\n"
        "• Why this matters to readers or the wider context\n\n"
        "IMPORTANT: Do NOT use markdown formatting like ** or __. Write section headers as plain text.\n\n"
        "Be thorough and detailed. Aim for 200-400 words total. Extract maximum information value.\n\n"
        f"Content:\n{text}\n\n"
        "Structured summary:"
    )


_STRATEGIES: MappingProxyType[int, _LevelStrategy] = MappingProxyType(
    {
        1: _LevelStrategy(
            system=(
                "You are an expert at extreme compression and distillation of information. "
                "Your specialty is capturing the single most important idea from any content. "
                "You produce ultra-concise, clear, and accurate one-sentence summaries. "
                "Every word must count."
            ),
            template=_one_sentence,
            expected_structure="sentence",
            description="Ultra-short: One sentence, core idea only",
        ),
        2: _LevelStrategy(
            system=(
                "You are an expert summarizer who creates scannable bullet-point summaries. "
                "Your summaries are clear, actionable, and readable in under 10 seconds. "
                "You extract key ideas and present them as concise bullets. "
                "No fluff, no filler, only substance."
            ),
            template=_bullets,
            expected_structure="bullets",
            description="Short: 3-5 bullet points, key ideas",
        ),
        3: _LevelStrategy(
            system=(
                "You are an expert analyst who creates comprehensive structured summaries. "
                "Your summaries follow a strict 5-section format that covers core message, "
                "details, data, consequences, and broader impact. "
                "You organize information logically and extract maximum value from content. "
                "Your output is thorough yet organized. "
                "Aim for 200-400 words to provide comprehensive coverage."
            ),
            template=_structured,
            expected_structure="structured",
            description="Full: Structured summary with details",
        ),
    }
)


def is_valid_level(level: object) -> bool:
    """Return True for the integers 1, 2 and 3 (``bool`` is rejected)."""
    return isinstance(level, int) and not isinstance(level, bool) and level in _STRATEGIES


def _strategy_for(level: object) -> _LevelStrategy:
    if not is_valid_level(level):
        raise PromptConstructionError(f"Invalid summary level: {level}")
    return _STRATEGIES[level]  # type: ignore[index]


def build_progressive_prompt(text: str, level: SummaryLevel) -> ProgressivePrompt:
    """Build the compression prompt for ``text`` at the given level.

    Raises:
        PromptConstructionError: If ``level`` is not 1, 2 or 3.
    """
    strategy = _strategy_for(level)
    return ProgressivePrompt(
        system=strategy.system,
        instruction=strategy.template(text),
        expected_structure=strategy.expected_structure,
    )


def list_summary_levels() -> list[int]:
    return list(SUMMARY_LEVELS)


def describe_level(level: SummaryLevel) -> str:
    return _strategy_for(level).description


def min_level() -> int:
    return min(SUMMARY_LEVELS)


def max_level() -> int:
    return max(SUMMARY_LEVELS)


def can_expand_level(level: SummaryLevel) -> bool:
    return level < max_level()


def can_collapse_level(level: SummaryLevel) -> bool:
    return level > min_level()
