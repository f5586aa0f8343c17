"""Decoder for Dify server-sent event bodies.

The body is framed by newlines. A line starting with ``data:`` carries one
JSON frame; other lines (blank separators, ``event:``/``id:``/``retry:``
fields, ``:`` comments) are ignored. A ``[DONE]`` payload ends the stream.
Frames that fail to parse are logged and skipped so one corrupt line does
not lose the rest of the answer.
"""

from collections.abc import Iterable, Iterator
import json
import logging
from typing import Any

from ..constants import SSE_DATA_PREFIX, SSE_DONE_SENTINEL  # noqa: TID252
from ..exceptions import StreamProtocolError  # noqa: TID252
from .accumulators import AppType, StreamAccumulator, create_accumulator, error_text
from .results import StreamResult

log = logging.getLogger(__name__)


class StreamEventDecoder:
    """Turns a raw event-stream body into a structured result.

    Args:
        secrets: Values scrubbed from ``StreamProtocolError`` messages.
    """

    def __init__(self, secrets: Iterable[str | None] = ()):
        self.secrets = tuple(secrets)

    def iter_frames(self, raw_body: str) -> Iterator[dict[str, Any]]:
        """Yield each decodable JSON object frame up to ``[DONE]``."""
        # Only "\n" delimits frames; JSON strings may carry U+2028 or U+0085 unescaped
        for line_number, raw_line in enumerate(raw_body.split("\n"), 1):
            line = raw_line.strip()
            if not line.startswith(SSE_DATA_PREFIX):
                continue

            payload = line[len(SSE_DATA_PREFIX) :]
            if payload.startswith(" "):
                payload = payload[1:]
            payload = payload.strip()

            if payload == SSE_DONE_SENTINEL:
                log.debug("Stream completed with [DONE] at line %d", line_number)
                return
            if not payload:
                continue

            try:
                frame = json.loads(payload)
            except json.JSONDecodeError as e:
                log.warning("Skipping malformed stream frame at line %d: %s", line_number, e)
                continue
            if not isinstance(frame, dict):
                log.warning(
                    "Skipping non-object stream frame at line %d (%s)",
                    line_number,
                    type(frame).__name__,
                )
                continue
            yield frame

    def decode(
        self,
        raw_body: str,
        variant: AppType | str | StreamAccumulator[Any],
    ) -> StreamResult:
        """Feed every frame to the accumulator for ``variant``.

        Returns the result as soon as a terminal event arrives, or the partial
        result when the body ends without one.

        Raises:
            StreamProtocolError: If the stream carries an ``error`` event.
        """
        accumulator = (
            variant
            if isinstance(variant, StreamAccumulator)
            else create_accumulator(variant)
        )

        for frame in self.iter_frames(raw_body):
            event = frame.get("event")
            if event == "error":
                accumulator.fail(frame)
                raise StreamProtocolError(
                    error_text(frame),
                    code=_optional_str(frame.get("code")),
                    status=_optional_int(frame.get("status")),
                    secrets=self.secrets,
                )
            if accumulator.handle(frame):
                log.debug("Stream terminated by %s event", event)
                return accumulator.finish()

        log.debug("Stream ended without a terminal event for %s", accumulator.app_type)
        return accumulator.finish()


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _optional_int(value: Any) -> int | None:
    try:
        return None if value is None else int(value)
    except (TypeError, ValueError):
        return None


def decode_stream(
    raw_body: str,
    variant: AppType | str | StreamAccumulator[Any],
    *,
    secrets: Iterable[str | None] = (),
) -> StreamResult:
    """Shortcut for ``StreamEventDecoder(secrets).decode(raw_body, variant)``."""
    return StreamEventDecoder(secrets).decode(raw_body, variant)
