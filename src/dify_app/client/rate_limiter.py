"""Sliding-window rate limiting for Dify API requests"""  # noqa: D415

from collections import deque
from collections.abc import Callable
import logging
import threading
import time

from ..exceptions import RateLimitExceeded  # noqa: TID252
from .configuration import RateLimitConfig

log = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class RateLimiter:
    """Admits at most ``max_requests`` calls per sliding ``window_ms``.

    Admission fails closed: a refused call raises ``RateLimitExceeded`` and is
    not recorded. There is no waiting or queuing.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.config = config if config is not None else RateLimitConfig()
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def admit(self, now_ms: float | None = None) -> None:
        """Record one request or raise ``RateLimitExceeded``."""
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            self._evict(now)
            if len(self._timestamps) >= self.config.max_requests:
                retry_after = self.config.window_ms - (now - self._timestamps[0])
                log.warning(
                    "Rate limit reached: %d requests in %d ms",
                    len(self._timestamps),
                    self.config.window_ms,
                )
                raise RateLimitExceeded(
                    f"Rate limit exceeded: at most {self.config.max_requests} "
                    f"requests per {self.config.window_ms} ms",
                    retry_after_ms=max(retry_after, 0.0),
                )
            self._timestamps.append(now)

    def remaining(self, now_ms: float | None = None) -> int:
        """Number of requests that would be admitted right now."""
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            self._evict(now)
            return self.config.max_requests - len(self._timestamps)

    def reset(self) -> None:
        """Forget every recorded request."""
        with self._lock:
            self._timestamps.clear()

    def _evict(self, now: float) -> None:
        # Remove timestamps that have left the window
        while self._timestamps and now - self._timestamps[0] >= self.config.window_ms:
            self._timestamps.popleft()
