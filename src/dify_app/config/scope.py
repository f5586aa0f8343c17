"""Context-local configuration overrides.

``config_scope`` makes ``resolve_config()`` return a given configuration for
the duration of a ``with`` block. It is backed by a context variable, so it
is safe across threads and asyncio tasks.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("dify_app_resolved_config")
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    """Return the configuration set by an enclosing scope, if any."""
    try:
        return _ambient_resolved_config.get()
    except LookupError:
        return None


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily use ``config`` for configuration resolution.

    Example:
        base = resolve_config()
        with config_scope(base.with_overrides(user="batch-job")):
            client = Chatbot()  # resolves to the scoped config
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Temporarily override individual configuration fields.

    Example:
        with config_override(cache_ttl_ms=0):
            config = resolve_config()  # cache disabled
    """
    base_config = get_ambient_resolved_config()
    if base_config is None:
        # Import here to avoid circular dependency at module level
        from .api import resolve_config  # noqa: PLC0415

        base_config = resolve_config()

    with config_scope(base_config.with_overrides(**overrides)):
        yield
