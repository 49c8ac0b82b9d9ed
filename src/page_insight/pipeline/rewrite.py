"""Splicing the run-time summary into a planned rewrite instruction.

At plan time the rewrite instruction embeds the page text where the summary
will go. Once the progressive stage has produced a summary, that section is
replaced so the rewrite stage restyles the summary, not the raw page.
"""

from __future__ import annotations

SUMMARY_MARKER = "Original summary:"
CONTENT_MARKER = "Content:"


def _splice(template: str, marker: str, summary: str) -> str | None:
    start = template.find(marker)
    if start == -1:
        return None
    end = template.find("\n\n", start + len(marker))
    if end == -1:
        return None
    return f"{template[:start]}{SUMMARY_MARKER}\n{summary}{template[end:]}"


def build_rewrite_instruction(template: str, summary: str) -> str:
    """Return ``template`` with its summary section replaced by ``summary``.

    The section starts at ``Original summary:`` (or, failing that,
    ``Content:``) and runs up to the next blank line; everything from the
    blank line on is kept. A template with neither section gets one appended.
    """
    for marker in (SUMMARY_MARKER, CONTENT_MARKER):
        spliced = _splice(template, marker, summary)
        if spliced is not None:
            return spliced
    return f"{template}\n\n{SUMMARY_MARKER}\n{summary}\n\nRewritten summary:"
