"""Public API for the configuration system."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import FrozenConfig, ResolvedConfig

# Shared resolver; it holds no per-call state.
_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    use_env_file: str | Path | bool | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Programmatic > Environment > Project file > Home file > Defaults

    Args:
        programmatic: Overrides with the highest precedence. Unknown keys are
            ignored.
        profile: Profile to load from configuration files. Defaults to
            ``PAGE_INSIGHT_PROFILE`` when unset.
        use_env_file: ``.env`` file to load before reading the environment,
            or ``True`` to search for one.
        project_root: Directory to search (upwards) for pyproject.toml.

    Raises:
        ConfigurationError: If validation fails.
        ConfigFileError: If a configuration file is malformed.

    Example:
        config = resolve_config({"provider": "openai", "retries": 0})
        print(config.audit())
    """
    return _resolver.resolve(
        programmatic=programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def load_config(
    programmatic: dict[str, Any] | None = None, **kwargs: Any
) -> FrozenConfig:
    """Resolve and freeze in one step."""
    return resolve_config(programmatic, **kwargs).to_frozen()


def list_available_profiles(project_root: Path | None = None) -> dict[str, list[str]]:
    """List profile names from the project and home configuration files."""
    return _resolver.list_available_profiles(project_root)


def get_effective_profile() -> str | None:
    """Return the profile named by ``PAGE_INSIGHT_PROFILE``, if any."""
    return _resolver.get_effective_profile()


def check_environment() -> dict[str, str]:
    """Return the set ``PAGE_INSIGHT_*`` variables with secrets redacted."""
    return _resolver.env_loader.get_env_summary()
