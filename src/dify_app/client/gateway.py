"""Request gateway shared by every Dify application client.

Each call goes through the same envelope:

1. Local rate-limit admission (every attempt, fails closed).
2. For GET requests, a lookup in the response cache keyed by the full URL.
3. One blocking transport call with bearer authentication.
4. Status classification; non-2xx responses become ``HTTPError`` with the
   server's message, 429 as ``TooManyRequestsError``.
5. JSON decoding of the body, falling back to ``{"content": text}``.
6. For GET requests, storing the decoded body in the cache.

Error messages are sanitized when the exception is built, so the API key
never reaches a caller, a log line or a traceback message.
"""

from collections.abc import Mapping
import copy
from dataclasses import dataclass
import json
import logging
from typing import Any
from urllib.parse import quote

from ..constants import DEFAULT_BASE_URL, NETWORK_TIMEOUT, QUERY_SAFE_CHARS  # noqa: TID252
from ..exceptions import (  # noqa: TID252
    ConfigurationError,
    HTTPError,
    NetworkError,
    RateLimitExceeded,
    TooManyRequestsError,
    ValidationError,
    redact_secrets,
)
from ..telemetry import TelemetryContext, TelemetryContextProtocol  # noqa: TID252
from .rate_limiter import RateLimiter
from .response_cache import ResponseCache
from .transport import HttpxTransport, Transport, TransportRequest, TransportResponse

log = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

# Distinguishes a cache miss from a cached JSON null
_MISS = object()


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one API call.

    ``params`` keeps insertion order; entries whose value is None are dropped
    from the query string. ``files`` marks a multipart upload.
    """

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json_body: Any = None
    data: Mapping[str, Any] | None = None
    files: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:  # noqa: D105
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise ValidationError(f"Unsupported HTTP method: {self.method}", field="method")
        object.__setattr__(self, "method", method)

    @property
    def is_upload(self) -> bool:
        return bool(self.files)


@dataclass(frozen=True)
class BinaryPayload:
    """Raw response body for non-JSON endpoints such as text-to-audio"""  # noqa: D415

    data: bytes
    content_type: str | None = None

    def __len__(self) -> int:
        return len(self.data)


def encode_query(params: Mapping[str, Any] | None) -> str:
    """Encode ``params`` in order, skipping None values."""
    if not params:
        return ""
    parts = []
    for key, value in params.items():
        if value is None:
            continue
        parts.append(
            f"{quote(str(key), safe=QUERY_SAFE_CHARS)}="
            f"{quote(_stringify(value), safe=QUERY_SAFE_CHARS)}"
        )
    return "&".join(parts)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _error_message(body: str, status: int) -> tuple[str, str | None]:
    """Pick the server's message (and code) out of an error body."""
    try:
        parsed = json.loads(body)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        code = parsed.get("code")
        code = str(code) if code is not None else None
        message = parsed.get("message")
        if not message:
            error = parsed.get("error")
            message = error.get("message") if isinstance(error, dict) else error
        if message:
            return str(message), code
        return body or f"HTTP {status}", code

    return body.strip() or f"HTTP {status}", None


class RequestGateway:
    """Rate-limited, cached, sanitizing access to one Dify application.

    The limiter and cache are owned by the gateway; pass existing instances to
    share them between clients explicitly.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        transport: Transport | None = None,
        rate_limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        timeout: float = NETWORK_TIMEOUT,
        telemetry: TelemetryContextProtocol | None = None,
    ):
        if not api_key:
            raise ConfigurationError(
                "An API key is required. Set DIFY_API_KEY or pass api_key explicitly."
            )
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport if transport is not None else HttpxTransport(timeout=timeout)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.cache = cache if cache is not None else ResponseCache()
        self.telemetry = telemetry if telemetry is not None else TelemetryContext()

    def __repr__(self) -> str:
        return f"RequestGateway(base_url={self.base_url!r}, api_key='[REDACTED]')"

    # --- Public API ---

    def build_url(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """Resolve ``path`` against the base URL and append the query string."""
        if not path.startswith("/"):
            path = f"/{path}"
        query = encode_query(params)
        return f"{self.base_url}{path}?{query}" if query else f"{self.base_url}{path}"

    def execute(self, descriptor: RequestDescriptor) -> Any:
        """Run ``descriptor`` through the full envelope and return decoded JSON.

        Raises:
            RateLimitExceeded: If local admission refuses the call.
            HTTPError: For non-2xx responses (``TooManyRequestsError`` on 429).
            NetworkError: If the transport fails.
        """
        with self.telemetry("gateway.execute", method=descriptor.method):
            self._admit()
            url = self.build_url(descriptor.path, descriptor.params)
            cacheable = descriptor.method == "GET"

            if cacheable:
                cached = self.cache.lookup(url, default=_MISS)
                if cached is not _MISS:
                    self.telemetry.count("cache.hit")
                    log.debug("Cache hit: %s", descriptor.path)
                    return copy.deepcopy(cached)
                self.telemetry.count("cache.miss")

            response = self._send(descriptor, url)
            payload = self._decode_body(response.text)

            if cacheable:
                self.cache.store(url, copy.deepcopy(payload))
            return payload

    def stream(self, descriptor: RequestDescriptor) -> str:
        """Send ``descriptor`` and return the raw event-stream body.

        Streaming responses are never cached.
        """
        with self.telemetry("gateway.stream", method=descriptor.method):
            self._admit()
            url = self.build_url(descriptor.path, descriptor.params)
            return self._send(descriptor, url).text

    def fetch_bytes(self, descriptor: RequestDescriptor) -> BinaryPayload:
        """Send ``descriptor`` and return the undecoded body."""
        with self.telemetry("gateway.fetch_bytes", method=descriptor.method):
            self._admit()
            url = self.build_url(descriptor.path, descriptor.params)
            response = self._send(descriptor, url)
            return BinaryPayload(data=response.content, content_type=response.content_type)

    def redact(self, text: str) -> str:
        """Sanitize ``text`` the same way gateway errors are sanitized."""
        return redact_secrets(text, self.secrets())

    def secrets(self) -> tuple[str, ...]:
        """Values scrubbed from errors raised on behalf of this gateway."""
        return (self._api_key,)

    def close(self) -> None:
        """Release the transport's resources."""
        close = getattr(self.transport, "close", None)
        if callable(close):
            close()

    # --- Internals ---

    def _admit(self) -> None:
        try:
            self.rate_limiter.admit()
        except RateLimitExceeded:
            self.telemetry.count("rate_limit.rejected")
            raise

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if not descriptor.is_upload:
            headers["Content-Type"] = "application/json"
        return headers

    def _send(self, descriptor: RequestDescriptor, url: str) -> TransportResponse:
        request = TransportRequest(
            method=descriptor.method,
            url=url,
            headers=self._headers(descriptor),
            json=descriptor.json_body,
            data=descriptor.data,
            files=descriptor.files,
        )
        log.debug("%s %s", descriptor.method, descriptor.path)

        try:
            response = self.transport.fetch(request)
        except NetworkError as e:
            # Rebuilt without the cause: transport errors can echo headers
            log.warning("Network error on %s %s", descriptor.method, descriptor.path)
            raise NetworkError(e.message, secrets=self.secrets()) from None

        if not 200 <= response.status_code < 300:
            raise self._http_error(response)
        return response

    def _http_error(self, response: TransportResponse) -> HTTPError:
        status = response.status_code
        message, code = _error_message(response.text, status)
        error_cls = TooManyRequestsError if status == 429 else HTTPError
        error = error_cls(status, message, code=code, secrets=self.secrets())
        log.warning("Dify API returned HTTP %d: %s", status, error.message)
        return error

    @staticmethod
    def _decode_body(text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError:
            return {"content": text}
