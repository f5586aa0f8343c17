"""Contract tests for decoding streamed answers."""

import pytest

from dify_app import Chatbot, Textgenerator, Workflow
from dify_app.exceptions import StreamProtocolError
from dify_app.streaming import AppType, StreamEventDecoder
from tests.fixtures.streams import sse


@pytest.fixture
def decoder() -> StreamEventDecoder:
    return StreamEventDecoder()


class TestStreamContracts:
    @pytest.mark.contract
    def test_chat_chunks_concatenate_in_order(self, decoder):
        body = (
            'data: {"event":"message","answer":"A"}\n\n'
            'data: {"event":"message","answer":"B"}\n\n'
            'data: {"event":"message_end","metadata":{}}\n\n'
            "data: [DONE]"
        )
        assert decoder.decode(body, AppType.CHAT).answer == "AB"

    @pytest.mark.contract
    @pytest.mark.parametrize("app_type", [AppType.CHAT, AppType.CHATFLOW, AppType.COMPLETION])
    def test_message_replace_wins(self, decoder, app_type):
        body = sse(
            {"event": "message", "answer": "draft one"},
            {"event": "message_replace", "answer": "final"},
            {"event": "message_end"},
        )
        assert decoder.decode(body, app_type).answer == "final"

    @pytest.mark.contract
    def test_malformed_frame_does_not_lose_answer(self, decoder):
        body = sse(
            {"event": "message", "answer": "A"},
            '{"event": "message", "answer": ',
            {"event": "message", "answer": "B"},
            {"event": "message_end"},
        )
        assert decoder.decode(body, AppType.CHAT).answer == "AB"

    @pytest.mark.contract
    def test_error_event_surfaces_its_message(self, gateway, transport):
        transport.queue_stream('data: {"event":"error","message":"boom"}')

        with pytest.raises(StreamProtocolError) as exc_info:
            Chatbot(gateway=gateway, user="u").send_message("hi")
        assert exc_info.value.message == "boom"

    @pytest.mark.contract
    def test_workflow_outputs_and_node_order(self, gateway, transport):
        transport.queue_stream(
            sse(
                {"event": "workflow_started", "workflow_run_id": "wr", "data": {"id": "wr"}},
                {"event": "node_finished", "data": {"outputs": {"step": 1}}},
                {"event": "node_finished", "data": {"outputs": {"step": 2}}},
                {"event": "node_finished", "data": {"outputs": {"step": 3}}},
                {"event": "workflow_finished", "data": {"outputs": {"x": 1}}},
            )
        )

        result = Workflow(gateway=gateway, user="u").run_workflow({})

        assert result.outputs == {"x": 1}
        assert [o["step"] for o in result.node_outputs] == [1, 2, 3]

    @pytest.mark.contract
    def test_frames_after_terminal_event_are_not_applied(self, gateway, transport):
        transport.queue_stream(
            sse(
                {"event": "message", "answer": "done"},
                {"event": "message_end"},
                {"event": "message", "answer": " and more"},
            )
        )
        result = Textgenerator(gateway=gateway, user="u").create_completion_message({"query": "q"})
        assert result.answer == "done"

    @pytest.mark.contract
    def test_stream_without_terminal_event_returns_partial_result(self, decoder):
        body = sse({"event": "workflow_started", "workflow_run_id": "wr-9"})
        result = decoder.decode(body, AppType.WORKFLOW)
        assert result.workflow_run_id == "wr-9"
        assert result.status == ""
