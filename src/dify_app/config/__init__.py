"""Configuration management for the Dify client.

Configuration is resolved once from programmatic overrides, DIFY_* environment
variables, ``[tool.dify_app]`` in pyproject.toml, and the home file, then
carried as an immutable ``ResolvedConfig`` with a source map for auditing.
"""

from .api import (
    check_environment,
    get_effective_profile,
    list_available_profiles,
    resolve_config,
    validate_profile,
)
from .audit import SourceTracker, summarize_origins
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import DifySettings
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    # Resolution
    "resolve_config",
    "ResolvedConfig",
    "ConfigResolver",
    "DifySettings",
    # Scoping
    "config_scope",
    "config_override",
    "get_ambient_resolved_config",
    # Profiles and inspection
    "list_available_profiles",
    "get_effective_profile",
    "validate_profile",
    "check_environment",
    # Audit
    "SourceTracker",
    "summarize_origins",
    "ConfigOrigin",
    "SourceMap",
    # Files
    "ConfigFileError",
    "FileConfigLoader",
]
