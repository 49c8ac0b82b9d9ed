"""Configuration management for page-insight.

Resolve once, freeze, then flow:

- ``resolve_config()`` merges programmatic values, ``PAGE_INSIGHT_*``
  environment variables, ``[tool.page_insight]`` in pyproject.toml, the home
  file and defaults into a ``ResolvedConfig`` with per-field origins.
- ``ResolvedConfig.to_frozen()`` produces the immutable ``FrozenConfig`` the
  executor and front door read.
"""

from .api import (
    check_environment,
    get_effective_profile,
    list_available_profiles,
    load_config,
    resolve_config,
)
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver, SourceTracker
from .schema import PageInsightSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "FileConfigLoader",
    "FrozenConfig",
    "PageInsightSettings",
    "ResolvedConfig",
    "SourceMap",
    "SourceTracker",
    "check_environment",
    "get_effective_profile",
    "list_available_profiles",
    "load_config",
    "resolve_config",
]
