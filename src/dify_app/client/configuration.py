"""
Request pipeline configuration for the Dify client
"""  # noqa: D200, D212, D415

from dataclasses import dataclass

from ..constants import CACHE_TTL_MS, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_MS  # noqa: TID252


@dataclass(frozen=True)
class RateLimitConfig:
    """Sliding-window admission parameters"""  # noqa: D415

    max_requests: int = RATE_LIMIT_MAX_REQUESTS
    window_ms: int = RATE_LIMIT_WINDOW_MS

    def __post_init__(self) -> None:  # noqa: D105
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_ms <= 0:
            raise ValueError("window_ms must be positive")


@dataclass(frozen=True)
class CacheConfig:
    """GET response cache parameters"""  # noqa: D415

    ttl_ms: int = CACHE_TTL_MS
    max_entries: int | None = None

    def __post_init__(self) -> None:  # noqa: D105
        if self.ttl_ms < 0:
            raise ValueError("ttl_ms must not be negative")
        if self.max_entries is not None and self.max_entries < 1:
            raise ValueError("max_entries must be at least 1 when set")
