"""Lenient JSON extraction from model text."""

from __future__ import annotations

import json
import logging
from typing import Any

log = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "quota")


def _unwrap_code_fence(text: str) -> str | None:
    """Return the body of a text that is a single Markdown code block."""
    stripped = text.strip()
    if not (stripped.startswith("```") and stripped.endswith("```")):
        return None
    if len(stripped) < 6:
        return None
    body = stripped[3:-3]
    # Drop a language tag such as ``json`` on the opening fence line.
    first_newline = body.find("\n")
    if first_newline != -1 and body[:first_newline].strip().isalpha():
        body = body[first_newline + 1 :]
    return body.strip()


def parse_json_safely(text: str) -> Any:
    """Decode ``text`` as JSON, falling back to the text itself.

    Models often wrap JSON in a fenced code block; the block's body is tried
    when the whole text is not valid JSON.
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass
    fenced = _unwrap_code_fence(text) if isinstance(text, str) else None
    if fenced is not None:
        try:
            return json.loads(fenced)
        except json.JSONDecodeError:
            log.debug("Fenced block is not valid JSON; keeping raw text.")
    return text


def is_rate_limit_message(message: str) -> bool:
    """True when an error message reports a rate limit or an exhausted quota."""
    return RATE_LIMIT_MARKERS[0] in message or RATE_LIMIT_MARKERS[1] in message.lower()
