"""Environment variable configuration loading.

Reads ``PAGE_INSIGHT_*`` variables, optionally after loading a ``.env`` file
with python-dotenv. Values are validated through the settings schema.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from page_insight.core.exceptions import ConfigurationError

from .schema import CONFIG_FIELDS, PageInsightSettings

ENV_PREFIX = "PAGE_INSIGHT_"
ENV_VARS: dict[str, str] = {f"{ENV_PREFIX}{f.upper()}": f for f in CONFIG_FIELDS}


class EnvironmentConfigLoader:
    """Loads configuration from ``PAGE_INSIGHT_*`` environment variables."""

    def load_env_config(
        self, env_file: str | Path | bool | None = None
    ) -> dict[str, Any]:
        """Return the fields that are actually set in the environment.

        Args:
            env_file: A ``.env`` path to load first, or ``True`` to let
                python-dotenv search for one. Existing variables win.

        Raises:
            ConfigurationError: If an explicit env file is missing or a
                variable holds an invalid value.
        """
        if env_file:
            self._load_env_file(env_file)

        env_values = {
            field: os.environ[var] for var, field in ENV_VARS.items() if var in os.environ
        }
        if not env_values:
            return {}

        try:
            settings = PageInsightSettings(**env_values)
        except PydanticValidationError as e:
            shown = [
                f"{var}=<redacted>" if "API_KEY" in var else f"{var}={os.environ[var]}"
                for var, field in ENV_VARS.items()
                if field in env_values
            ]
            raise ConfigurationError(
                f"Invalid environment variable values: {', '.join(shown)}. Error: {e}"
            ) from e
        return {field: getattr(settings, field) for field in env_values}

    def _load_env_file(self, env_file: str | Path | bool) -> None:
        if env_file is True:
            load_dotenv(override=False)
            return
        env_path = Path(env_file)
        if not env_path.exists():
            raise ConfigurationError(f"Environment file not found: {env_path}")
        load_dotenv(env_path, override=False)

    def get_env_summary(self) -> dict[str, str]:
        """Return the set ``PAGE_INSIGHT_*`` variables with secrets redacted."""
        return {
            var: "<redacted>" if "API_KEY" in var else os.environ[var]
            for var in ENV_VARS
            if var in os.environ
        }
