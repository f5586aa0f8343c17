"""Public API for the configuration system.

Entry points for configuration resolution and profile management.
"""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .scope import get_ambient_resolved_config
from .types import ResolvedConfig

# Shared resolver instance
_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Programmatic > Environment > Project file > Home file > Defaults.
    Inside a ``config_scope`` the scoped configuration is the base and only
    ``programmatic`` overrides are applied on top of it.

    Args:
        programmatic: Field overrides (highest precedence). Unknown keys are ignored.
        profile: Profile name to load from configuration files. If None,
                uses the DIFY_PROFILE environment variable if set.
        use_env_file: Optional .env file loaded before reading the environment.
        project_root: Directory to search for pyproject.toml. If None,
                     searches the current directory and parents.

    Raises:
        ConfigurationError: If validation fails or the environment is invalid.
        ConfigFileError: If the project configuration file is malformed.

    Example:
        config = resolve_config()
        config = resolve_config({"base_url": "https://dify.internal/v1"})
        config = resolve_config(profile="staging")
    """
    ambient_config = get_ambient_resolved_config()
    if ambient_config is not None:
        if programmatic:
            return ambient_config.with_overrides(**programmatic)
        return ambient_config

    return _resolver.resolve(
        programmatic=programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def list_available_profiles(project_root: Path | None = None) -> dict[str, list[str]]:
    """List profile names, keyed by ``project`` and ``home``."""
    return _resolver.list_available_profiles(project_root)


def get_effective_profile() -> str | None:
    """Profile name from the DIFY_PROFILE environment variable, or None."""
    return _resolver.get_effective_profile()


def validate_profile(profile: str, project_root: Path | None = None) -> dict[str, bool]:
    """Check that ``profile`` exists in at least one configuration file.

    Returns:
        ``{"project": bool, "home": bool}``.

    Raises:
        ValueError: If the profile exists in neither file.
    """
    exists_in_project, exists_in_home = _resolver.validate_profile_exists(
        profile, project_root
    )

    if not exists_in_project and not exists_in_home:
        available = list_available_profiles(project_root)
        all_profiles = available["project"] + available["home"]
        raise ValueError(
            f"Profile '{profile}' not found. Available profiles: {all_profiles}"
        )

    return {"project": exists_in_project, "home": exists_in_home}


def check_environment() -> dict[str, str]:
    """Currently set DIFY_* configuration variables, secrets redacted."""
    return _resolver.env_loader.get_env_summary()
