"""Configuration resolution with precedence handling.

Precedence, highest first:
Programmatic > Environment > Project file > Home file > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from page_insight.core.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import PageInsightSettings
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV = "PAGE_INSIGHT_PROFILE"


class SourceTracker:
    """Records where each configuration value came from."""

    def __init__(self) -> None:
        """Initialize an empty source tracker."""
        self._origins: dict[str, ConfigOrigin] = {}

    def set_origin(self, field: str, origin: ConfigOrigin) -> None:
        self._origins[field] = origin

    def get_source_map(self) -> dict[str, ConfigOrigin]:
        return dict(self._origins)


class ConfigResolver:
    """Merges configuration sources according to precedence."""

    def __init__(self) -> None:
        """Initialize the file and environment loaders."""
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | bool | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Raises:
            ConfigurationError: If the merged values fail validation or the
                environment holds invalid values.
            ConfigFileError: If a configuration file is malformed.
        """
        tracker = SourceTracker()
        if profile is None:
            profile = os.getenv(PROFILE_ENV)

        merged: dict[str, Any] = {}
        for field, value in PageInsightSettings.model_construct().to_dict().items():
            merged[field] = value
            tracker.set_origin(field, "default")

        def apply(values: dict[str, Any], origin: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:
                    merged[field] = value
                    tracker.set_origin(field, origin)

        # A malformed home file should not block the project; it is skipped.
        try:
            apply(self.file_loader.load_home_config(profile=profile), "file")
        except ConfigFileError as e:
            log.warning("Ignoring home configuration: %s", e)

        try:
            apply(
                self.file_loader.load_project_config(
                    project_root=project_root, profile=profile
                ),
                "file",
            )
        except ConfigFileError:
            if profile is None:
                raise
            log.debug("Profile %r not available in project configuration", profile)

        apply(self.env_loader.load_env_config(env_file=use_env_file), "env")

        if programmatic:
            apply(programmatic, "programmatic")

        try:
            final = PageInsightSettings.model_validate(merged).to_dict()
        except PydanticValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**final, origin=tracker.get_source_map())

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        return self.file_loader.list_available_profiles(project_root)

    def get_effective_profile(self) -> str | None:
        return os.getenv(PROFILE_ENV)
