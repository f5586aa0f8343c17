"""HTTP transport seam for the request gateway.

The gateway talks to the network only through ``Transport.fetch``; the default
implementation is backed by ``httpx``. Tests swap in an in-memory transport.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from ..constants import NETWORK_TIMEOUT  # noqa: TID252
from ..exceptions import NetworkError  # noqa: TID252

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportRequest:
    """A fully resolved HTTP request"""  # noqa: D415

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None
    data: Mapping[str, Any] | None = None
    files: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and raw body of an HTTP response"""  # noqa: D415

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None


@runtime_checkable
class Transport(Protocol):
    """Performs one blocking HTTP round trip."""

    def fetch(self, request: TransportRequest) -> TransportResponse: ...  # noqa: D102


class HttpxTransport:
    """``httpx``-backed transport with no retries and no redirects."""

    def __init__(self, timeout: float = NETWORK_TIMEOUT, client: httpx.Client | None = None):
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _create_http_client(self) -> httpx.Client:
        """Create a configured HTTP client - centralized configuration"""  # noqa: D415
        return httpx.Client(timeout=self.timeout, follow_redirects=False)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = self._create_http_client()
        return self._client

    def fetch(self, request: TransportRequest) -> TransportResponse:
        """Send ``request`` and return the raw response.

        Raises:
            NetworkError: If no response was received.
        """
        try:
            response = self.client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                json=request.json,
                data=request.data,
                files=request.files,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {request.method} {request.url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Request failed: {request.method} {request.url}: {e}"
            ) from e

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
