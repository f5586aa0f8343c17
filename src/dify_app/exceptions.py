"""Exceptions raised by the Dify application client.

Every error message is sanitized when the exception is built: bearer tokens
and any secrets handed to the constructor are replaced with a redaction
marker, so an exception can be logged or shown without leaking credentials.
"""

from collections.abc import Iterable
import re

from .constants import REDACTION_MARKER

_BEARER_PATTERN = re.compile(r"Bearer\s+\S+")


def redact_secrets(text: str, secrets: Iterable[str | None] = ()) -> str:
    """Replace bearer tokens and the given secret values in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTION_MARKER)
    return _BEARER_PATTERN.sub(f"Bearer {REDACTION_MARKER}", text)


class DifyAppError(Exception):
    """Base exception for Dify client errors"""  # noqa: D415

    def __init__(self, message: str, *, secrets: Iterable[str | None] = ()) -> None:  # noqa: D107
        self.message = redact_secrets(str(message), secrets)
        super().__init__(self.message)


class ValidationError(DifyAppError):
    """Raised when caller input is rejected before any network call"""  # noqa: D415

    def __init__(self, message: str, *, field: str | None = None) -> None:  # noqa: D107
        self.field = field
        super().__init__(message)


class ConfigurationError(DifyAppError, ValueError):
    """Raised when the client cannot be configured (e.g. missing API key)"""  # noqa: D415


class RateLimitExceeded(DifyAppError):
    """Raised when the local sliding window refuses a request"""  # noqa: D415

    source = "local"

    def __init__(self, message: str, *, retry_after_ms: float | None = None) -> None:  # noqa: D107
        self.retry_after_ms = retry_after_ms
        super().__init__(message)


class HTTPError(DifyAppError):
    """Raised when the server answers with a non-2xx status"""  # noqa: D415

    def __init__(
        self,
        status: int,
        message: str,
        *,
        code: str | None = None,
        secrets: Iterable[str | None] = (),
    ) -> None:
        """Initialize with the HTTP status and the server's error message."""
        self.status = status
        self.code = code
        super().__init__(message, secrets=secrets)

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"


class TooManyRequestsError(HTTPError):
    """Raised when the server itself rejects a request with HTTP 429"""  # noqa: D415

    source = "server"


class StreamProtocolError(DifyAppError):
    """Raised when a stream carries an ``error`` event"""  # noqa: D415

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        secrets: Iterable[str | None] = (),
    ) -> None:
        """Initialize with the event's message and optional code/status."""
        self.code = code
        self.status = status
        super().__init__(message, secrets=secrets)


class NetworkError(DifyAppError):
    """Raised when the transport fails before a response arrives"""  # noqa: D415
