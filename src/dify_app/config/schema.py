"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from the environment, files and programmatic overrides into the correct
types with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (  # noqa: TID252
    CACHE_TTL_MS,
    DEFAULT_BASE_URL,
    NETWORK_TIMEOUT,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_MS,
)


class DifySettings(BaseSettings):
    """Pydantic settings schema for the Dify client.

    Integrates with environment variables using the DIFY_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="DIFY_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Connection ---

    api_key: str | None = Field(
        default=None,
        description="Dify application API key",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Dify API base URL",
        min_length=1,
    )

    user: str | None = Field(
        default=None,
        description="Default end-user identifier for user-scoped calls",
    )

    timeout_seconds: float = Field(
        default=NETWORK_TIMEOUT,
        description="Transport timeout in seconds",
        gt=0,
    )

    # --- Request Envelope ---

    rate_limit_window_ms: int = Field(
        default=RATE_LIMIT_WINDOW_MS,
        description="Sliding rate-limit window in milliseconds",
        ge=1,
    )

    rate_limit_max_requests: int = Field(
        default=RATE_LIMIT_MAX_REQUESTS,
        description="Requests admitted per window",
        ge=1,
    )

    cache_ttl_ms: int = Field(
        default=CACHE_TTL_MS,
        description="Lifetime of cached GET responses in milliseconds",
        ge=0,
    )

    cache_max_entries: int | None = Field(
        default=None,
        description="Optional cap on cached responses (least recently used evicted)",
        ge=1,
    )

    # --- Validation Rules ---

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop trailing slashes."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got: {v!r}")
        return v.rstrip("/")

    @field_validator("api_key", "user", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation.

        Returns:
            Dictionary with field names as keys and resolved values.
        """
        return {name: getattr(self, name) for name in type(self).model_fields}


def schema_defaults() -> dict[str, Any]:
    """Field defaults, without reading the environment."""
    return {
        name: field.get_default(call_default_factory=True)
        for name, field in DifySettings.model_fields.items()
    }
