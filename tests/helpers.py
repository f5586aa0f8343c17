"""Test doubles shared across the suite."""

from collections import deque
from dataclasses import dataclass, field
import json
from typing import Any

from dify_app.client.transport import TransportRequest, TransportResponse


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: float = 1_000_000.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@dataclass
class FakeTransport:
    """In-memory transport that records requests and replays queued responses.

    When the queue is empty, the ``default`` response is returned.
    """

    responses: deque[TransportResponse | Exception] = field(default_factory=deque)
    default: TransportResponse = field(
        default_factory=lambda: TransportResponse(200, {"content-type": "application/json"}, b"{}")
    )
    requests: list[TransportRequest] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> TransportRequest:
        return self.requests[-1]

    def queue_json(self, payload: Any, status: int = 200) -> None:
        self.responses.append(
            TransportResponse(
                status,
                {"content-type": "application/json"},
                json.dumps(payload).encode(),
            )
        )

    def queue_text(self, text: str, status: int = 200, content_type: str = "text/plain") -> None:
        self.responses.append(
            TransportResponse(status, {"content-type": content_type}, text.encode())
        )

    def queue_stream(self, body: str) -> None:
        self.queue_text(body, content_type="text/event-stream")

    def queue_bytes(self, content: bytes, content_type: str) -> None:
        self.responses.append(TransportResponse(200, {"Content-Type": content_type}, content))

    def queue_error(self, error: Exception) -> None:
        self.responses.append(error)

    def fetch(self, request: TransportRequest) -> TransportResponse:
        self.requests.append(request)
        if not self.responses:
            return self.default
        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response
