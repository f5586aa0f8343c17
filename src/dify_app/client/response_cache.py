"""In-memory cache for successful GET responses"""  # noqa: D415

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
import logging
import threading
from typing import Any

from .configuration import CacheConfig
from .rate_limiter import monotonic_ms

log = logging.getLogger(__name__)


@dataclass
class CacheMetrics:
    """Cache usage counters"""  # noqa: D415

    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert metrics to dictionary format"""  # noqa: D415
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "evictions": self.evictions,
        }


class ResponseCache:
    """URL-keyed response cache with lazy TTL expiry.

    An entry older than ``ttl_ms`` is treated as absent and removed by the
    lookup that notices it. When ``max_entries`` is set the least recently
    used entry is dropped on overflow.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.config = config if config is not None else CacheConfig()
        self.metrics = CacheMetrics()
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, key: str, now_ms: float | None = None, default: Any = None) -> Any:
        """Return the cached payload for ``key``, or ``default`` on miss.

        Pass a sentinel as ``default`` to tell a miss from a cached ``None``.
        """
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.metrics.misses += 1
                return default
            payload, stored_at = entry
            if now - stored_at >= self.config.ttl_ms:
                del self._entries[key]
                self.metrics.misses += 1
                self.metrics.expirations += 1
                log.debug("Cache entry expired: %s", key)
                return default
            self._entries.move_to_end(key)
            self.metrics.hits += 1
            return payload

    def store(self, key: str, payload: Any, now_ms: float | None = None) -> None:
        """Store or replace the payload for ``key``."""
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            self._entries[key] = (payload, now)
            self._entries.move_to_end(key)
            max_entries = self.config.max_entries
            while max_entries is not None and len(self._entries) > max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.metrics.evictions += 1
                log.debug("Cache entry evicted: %s", evicted)

    def purge_expired(self, now_ms: float | None = None) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            expired = [
                key
                for key, (_, stored_at) in self._entries.items()
                if now - stored_at >= self.config.ttl_ms
            ]
            for key in expired:
                del self._entries[key]
            self.metrics.expirations += len(expired)
            return len(expired)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
