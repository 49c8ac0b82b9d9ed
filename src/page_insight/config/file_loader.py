"""File-based configuration loading with profile support.

Reads ``[tool.page_insight]`` from the nearest ``pyproject.toml`` and the
root table of ``~/.config/page_insight.toml``. Both may hold named profiles
under ``profiles.<name>``.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from page_insight.core.exceptions import ConfigurationError

HOME_CONFIG_ENV = "PAGE_INSIGHT_CONFIG_HOME"
TOOL_SECTION = "page_insight"


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file cannot be loaded."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open(mode="rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e


def _select_profile(
    path: Path, section: dict[str, Any], profile: str | None
) -> dict[str, Any]:
    if profile:
        profiles = section.get("profiles", {})
        if profile not in profiles:
            raise ConfigFileError(
                path,
                f"Profile '{profile}' not found. Available profiles: {list(profiles)}",
            )
        return dict(profiles[profile])
    config = dict(section)
    config.pop("profiles", None)
    return config


class FileConfigLoader:
    """Loads configuration from TOML files with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load ``[tool.page_insight]`` from the nearest pyproject.toml.

        Returns:
            The configuration values, or an empty dict when there is no file
            or no section.

        Raises:
            ConfigFileError: If the file is malformed or the profile is missing.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}
        section = _read_toml(pyproject_path).get("tool", {}).get(TOOL_SECTION, {})
        if not section:
            return {}
        return _select_profile(pyproject_path, section, profile)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load the home configuration file.

        Raises:
            ConfigFileError: If the file is malformed or the profile is missing.
        """
        path = self._get_home_config_path()
        if not path.exists():
            return {}
        return _select_profile(path, _read_toml(path), profile)

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """List profile names from the project and home files."""
        profiles: dict[str, list[str]] = {"project": [], "home": []}
        try:
            pyproject_path = self._find_pyproject_toml(project_root)
            if pyproject_path:
                section = (
                    _read_toml(pyproject_path).get("tool", {}).get(TOOL_SECTION, {})
                )
                profiles["project"] = list(section.get("profiles", {}))
        except ConfigFileError:
            pass
        try:
            home = self._get_home_config_path()
            if home.exists():
                profiles["home"] = list(_read_toml(home).get("profiles", {}))
        except ConfigFileError:
            pass
        return profiles

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Search ``start_dir`` and its parents for pyproject.toml."""
        current = Path(start_dir or Path.cwd()).resolve()
        while current != current.parent:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            current = current.parent
        return None

    def _get_home_config_path(self) -> Path:
        override = os.getenv(HOME_CONFIG_ENV)
        if override:
            return Path(override)
        return Path.home() / ".config" / "page_insight.toml"
