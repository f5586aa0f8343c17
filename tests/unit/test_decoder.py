"""Unit tests for event-stream framing and decoding."""

import json
import logging

import pytest

from dify_app.exceptions import StreamProtocolError
from dify_app.streaming import (
    AppType,
    ChatAccumulator,
    ChatResult,
    StreamEventDecoder,
    WorkflowResult,
    decode_stream,
)
from tests.fixtures.streams import CHAT_STREAM, sse

pytestmark = pytest.mark.unit


@pytest.fixture
def decoder() -> StreamEventDecoder:
    return StreamEventDecoder()


class TestFraming:
    """Line handling in ``iter_frames``."""

    def test_data_prefix_with_and_without_space(self, decoder):
        body = 'data: {"event": "a"}\ndata:{"event": "b"}\n'
        assert [f["event"] for f in decoder.iter_frames(body)] == ["a", "b"]

    def test_non_data_lines_are_ignored(self, decoder):
        body = (
            ": keep-alive comment\n"
            "event: message\n"
            "id: 7\n"
            "retry: 1000\n"
            "\n"
            'data: {"event": "message", "answer": "x"}\n'
        )
        assert list(decoder.iter_frames(body)) == [{"event": "message", "answer": "x"}]

    def test_done_sentinel_stops_iteration(self, decoder):
        body = 'data: {"event": "a"}\ndata: [DONE]\ndata: {"event": "b"}\n'
        assert [f["event"] for f in decoder.iter_frames(body)] == ["a"]

    def test_crlf_line_endings(self, decoder):
        body = 'data: {"event": "a"}\r\n\r\ndata: {"event": "b"}\r\n'
        assert [f["event"] for f in decoder.iter_frames(body)] == ["a", "b"]

    @pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\x85"])
    def test_unicode_line_separators_inside_json_stay_in_the_frame(self, decoder, separator):
        message = json.dumps({"event": "message", "answer": f"a{separator}b"}, ensure_ascii=False)
        body = sse(message, {"event": "message_end", "message_id": "m1"})

        result = decoder.decode(body, AppType.CHAT)

        assert result.answer == f"a{separator}b"

    def test_empty_payload_is_skipped(self, decoder):
        assert list(decoder.iter_frames("data:\ndata:   \n")) == []

    def test_malformed_json_is_logged_and_skipped(self, decoder, caplog):
        body = 'data: {"event": "a"}\ndata: {not json\ndata: {"event": "b"}\n'

        with caplog.at_level(logging.WARNING, logger="dify_app.streaming.decoder"):
            events = [f["event"] for f in decoder.iter_frames(body)]

        assert events == ["a", "b"]
        assert "malformed stream frame at line 2" in caplog.text

    def test_non_object_json_is_skipped(self, decoder):
        body = 'data: [1, 2]\ndata: "text"\ndata: {"event": "a"}\n'
        assert [f["event"] for f in decoder.iter_frames(body)] == ["a"]


class TestDecode:
    """Dispatch to accumulators and termination."""

    def test_returns_at_terminal_event(self, decoder):
        body = sse(
            {"event": "message", "answer": "A"},
            {"event": "message_end", "message_id": "m1"},
            {"event": "message", "answer": "ignored"},
        )
        result = decoder.decode(body, AppType.CHAT)
        assert result.answer == "A"

    def test_partial_result_without_terminal_event(self, decoder):
        body = sse({"event": "message", "answer": "half"})
        result = decoder.decode(body, "chat")
        assert isinstance(result, ChatResult)
        assert result.answer == "half"

    def test_empty_body_gives_empty_result(self, decoder):
        result = decoder.decode("", AppType.WORKFLOW)
        assert isinstance(result, WorkflowResult)
        assert result.answer == ""
        assert result.outputs == {}

    def test_accepts_accumulator_instance(self, decoder):
        accumulator = ChatAccumulator()
        result = decoder.decode(CHAT_STREAM, accumulator)
        assert result is accumulator.result
        assert result.answer == "Hello"

    def test_unknown_app_type_is_rejected(self, decoder):
        with pytest.raises(ValueError, match="Unknown application type"):
            decoder.decode("", "agent")

    def test_decode_stream_shortcut(self):
        assert decode_stream(CHAT_STREAM, AppType.CHAT).conversation_id == "c-1"


class TestErrorEvents:
    def test_error_event_raises_with_message_code_and_status(self, decoder):
        body = sse(
            {"event": "message", "answer": "partial"},
            {"event": "error", "message": "model quota exceeded", "code": "quota", "status": 400},
        )

        with pytest.raises(StreamProtocolError) as exc_info:
            decoder.decode(body, AppType.CHAT)

        error = exc_info.value
        assert error.message == "model quota exceeded"
        assert error.code == "quota"
        assert error.status == 400

    def test_error_text_falls_back_to_nested_error_then_code(self, decoder):
        with pytest.raises(StreamProtocolError, match="node failed"):
            decoder.decode(sse({"event": "error", "data": {"error": "node failed"}}), "workflow")
        with pytest.raises(StreamProtocolError, match="internal_error"):
            decoder.decode(sse({"event": "error", "code": "internal_error"}), "workflow")

    def test_non_numeric_status_is_dropped(self, decoder):
        with pytest.raises(StreamProtocolError) as exc_info:
            decoder.decode(sse({"event": "error", "message": "x", "status": "bad"}), "chat")
        assert exc_info.value.status is None

    def test_failing_accumulator_records_error(self, decoder):
        from dify_app.streaming import WorkflowAccumulator

        accumulator = WorkflowAccumulator()
        with pytest.raises(StreamProtocolError):
            decoder.decode(sse({"event": "error", "message": "boom", "task_id": "t"}), accumulator)

        assert accumulator.result.status == "failed"
        assert accumulator.result.error == "boom"
        assert accumulator.result.task_id == "t"

    def test_secrets_are_scrubbed_from_error_messages(self):
        decoder = StreamEventDecoder(secrets=("app-secret",))
        body = sse({"event": "error", "message": "key app-secret rejected"})

        with pytest.raises(StreamProtocolError) as exc_info:
            decoder.decode(body, "chat")
        assert "app-secret" not in str(exc_info.value)
