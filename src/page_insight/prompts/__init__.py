"""Per-stage prompt builders.

Each module turns the request text (or a summary) into a ``PromptPair`` for
one pipeline stage. Builders are pure and raise ``PromptConstructionError``
for unsupported options.
"""

from page_insight.prompts.bias import BiasPrompt, build_bias_prompt
from page_insight.prompts.intent import IntentPrompt, build_intent_prompt
from page_insight.prompts.meta import MetaPrompt, build_meta_prompt
from page_insight.prompts.modes import build_rewrite_prompt
from page_insight.prompts.progressive import (
    ProgressivePrompt,
    build_progressive_prompt,
)

__all__ = [
    "BiasPrompt",
    "IntentPrompt",
    "MetaPrompt",
    "ProgressivePrompt",
    "build_bias_prompt",
    "build_intent_prompt",
    "build_meta_prompt",
    "build_progressive_prompt",
    "build_rewrite_prompt",
]
