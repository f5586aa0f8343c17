"""Configuration resolution with precedence handling.

Merges configuration from every source in the documented order:
Programmatic > Environment > Project file > Home file > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError  # noqa: TID252
from .audit import SourceTracker
from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import DifySettings, schema_defaults
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV_VAR = "DIFY_PROFILE"


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence)
            profile: Profile name to load from files
            use_env_file: Optional .env file to load
            project_root: Directory to search for pyproject.toml

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If validation fails or the environment is invalid.
            ConfigFileError: If the project file is malformed.
        """
        source_tracker = SourceTracker()
        merged_config: dict[str, Any] = {}

        if profile is None:
            profile = self.get_effective_profile()

        def apply(values: dict[str, Any], origin: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged_config:  # Only override known fields
                    merged_config[field] = value
                    source_tracker.set_origin(field, origin)

        # Step 1: Schema defaults
        for field, value in schema_defaults().items():
            merged_config[field] = value
            source_tracker.set_origin(field, "default")

        # Step 2: Home file (non-fatal)
        try:
            apply(self.file_loader.load_home_config(profile=profile), "file")
        except ConfigFileError as e:
            log.warning("Ignoring home configuration: %s", e.message)

        # Step 3: Project file
        try:
            apply(
                self.file_loader.load_project_config(
                    project_root=project_root, profile=profile
                ),
                "file",
            )
        except ConfigFileError:
            # A missing profile may live in the home file; a broken base file may not
            if profile is None:
                raise

        # Step 4: Environment variables
        try:
            apply(self.env_loader.load_env_config(env_file=use_env_file), "env")
        except (ValueError, FileNotFoundError) as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e

        # Step 5: Programmatic overrides
        if programmatic:
            apply(programmatic, "programmatic")

        # Step 6: Validate the merged result
        try:
            validated = DifySettings(**merged_config)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors(include_input=False)
            )
            raise ConfigurationError(
                f"Configuration validation failed: {problems}"
            ) from None

        return ResolvedConfig(
            **validated.to_dict(), origin=source_tracker.get_source_map()
        )

    def validate_profile_exists(
        self, profile: str, project_root: Path | None = None
    ) -> tuple[bool, bool]:
        """Return whether ``profile`` exists in the project and home files."""
        available = self.file_loader.list_available_profiles(project_root)
        return profile in available["project"], profile in available["home"]

    def get_effective_profile(self) -> str | None:
        """Profile name from DIFY_PROFILE, or None."""
        return os.getenv(PROFILE_ENV_VAR) or None

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """List all available profiles from project and home files."""
        return self.file_loader.list_available_profiles(project_root)
