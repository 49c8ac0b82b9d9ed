"""Post-processing of model output: JSON parsing, shape checks, bias scoring."""

from page_insight.response.bias import bias_score, categorize_bias
from page_insight.response.parsing import is_rate_limit_message, parse_json_safely
from page_insight.response.validation import (
    BiasOutput,
    MetaOutput,
    is_valid_bias_output,
    is_valid_meta_output,
)

__all__ = [
    "BiasOutput",
    "MetaOutput",
    "bias_score",
    "categorize_bias",
    "is_rate_limit_message",
    "is_valid_bias_output",
    "is_valid_meta_output",
    "parse_json_safely",
]
