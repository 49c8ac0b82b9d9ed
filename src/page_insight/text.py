"""Preparing extracted page text before it is sent to a model."""

from __future__ import annotations

import re

DEFAULT_MAX_CHARS = 10_000

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
# Control characters other than tab, newline and carriage return.
_CONTROL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_SPACE_RUNS = re.compile(" +")
_BLANK_LINE_RUNS = re.compile("\n{3,}")


def sanitize_text(text: str | None) -> str:
    """Strip invisible characters and collapse redundant whitespace."""
    if not text:
        return ""
    text = _ZERO_WIDTH.sub("", text)
    text = _CONTROL.sub("", text)
    text = _SPACE_RUNS.sub(" ", text)
    text = _BLANK_LINE_RUNS.sub("\n\n", text)
    return text.strip()


def truncate_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Cut ``text`` to ``max_chars`` and mark the cut with ``...``.

    The cut moves back to the last space when that space lies within the
    final fifth of the window, so words are not split.
    """
    if not text or len(text) <= max_chars:
        return text
    truncated = text[:max_chars]
    last_space = truncated.rfind(" ")
    if last_space > max_chars * 0.8:
        truncated = truncated[:last_space]
    return f"{truncated}..."


def prepare_for_ai(text: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Sanitize then truncate."""
    if not text:
        return ""
    return truncate_text(sanitize_text(text), max_chars).strip()
