"""Core configuration data types.

Configuration is resolved once from every source, then flows through the
client as an immutable ``ResolvedConfig`` that remembers where each value
came from.
"""

from collections.abc import Mapping
from typing import Literal, NamedTuple

from ..client.configuration import CacheConfig, RateLimitConfig  # noqa: TID252
from ..constants import REDACTION_MARKER  # noqa: TID252

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

# Display order for audits and summaries
CONFIG_FIELDS = (
    "api_key",
    "base_url",
    "user",
    "timeout_seconds",
    "rate_limit_window_ms",
    "rate_limit_max_requests",
    "cache_ttl_ms",
    "cache_max_entries",
)

SECRET_FIELDS = frozenset({"api_key"})


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources.

    The validated, merged result of programmatic overrides, environment
    variables, files and defaults, plus the origin of each field.
    """

    api_key: str | None
    base_url: str
    user: str | None
    timeout_seconds: float
    rate_limit_window_ms: int
    rate_limit_max_requests: int
    cache_ttl_ms: int
    cache_max_entries: int | None

    # Audit metadata - tracks where each field value came from
    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = REDACTION_MARKER if self.api_key else None
        fields = ", ".join(
            f"{name}={api_key_display if name in SECRET_FIELDS else getattr(self, name)!r}"
            for name in CONFIG_FIELDS
        )
        return f"ResolvedConfig({fields}, origin={dict(self.origin)!r})"

    def __repr__(self) -> str:
        """Repr with redacted API key for safe debugging."""
        return self.__str__()

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Create a new ResolvedConfig with programmatic overrides applied.

        Unknown fields are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in CONFIG_FIELDS:
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def rate_limit_config(self) -> RateLimitConfig:
        return RateLimitConfig(
            max_requests=self.rate_limit_max_requests,
            window_ms=self.rate_limit_window_ms,
        )

    def cache_config(self) -> CacheConfig:
        return CacheConfig(ttl_ms=self.cache_ttl_ms, max_entries=self.cache_max_entries)

    def audit(self) -> str:
        """Generate a redacted audit report showing the origin of each field.

        Returns:
            One ``field: origin:value`` line per field; secrets are redacted.
        """
        lines = []
        for field in CONFIG_FIELDS:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)

            if field in SECRET_FIELDS:
                value_display = f"{origin}:None" if value is None else f"{origin}:{REDACTION_MARKER}"
            elif origin == "env":
                value_display = f"env:DIFY_{field.upper()}={value}"
            else:
                value_display = f"{origin}:{value}"

            lines.append(f"{field}: {value_display}")

        return "\n".join(lines)
