"""Per-application accumulators for streamed events.

Each accumulator owns one result record and a dispatch table mapping event
tags to handler methods. ``handle`` applies a single frame and reports
whether that frame ends the stream for this application type. Identifier
fields (conversation, message, task, workflow run) are last-write-wins:
every handled frame that carries a non-empty value overwrites the field.
"""

import base64
import binascii
from collections.abc import Mapping
from enum import StrEnum
import logging
from typing import Any, ClassVar

from .results import (
    ChatflowResult,
    ChatResult,
    CompletionResult,
    StreamResult,
    WorkflowResult,
)

log = logging.getLogger(__name__)

type Frame = Mapping[str, Any]

_ID_FIELDS = ("conversation_id", "message_id", "task_id", "workflow_run_id")


class AppType(StrEnum):
    """Dify application types with distinct stream vocabularies."""

    CHAT = "chat"
    CHATFLOW = "chatflow"
    COMPLETION = "completion"
    WORKFLOW = "workflow"


def _data(frame: Frame) -> Mapping[str, Any]:
    data = frame.get("data")
    return data if isinstance(data, Mapping) else {}


def error_text(frame: Frame) -> str:
    """Message of an ``error`` frame: ``message``, ``data.error``, then ``code``."""
    nested = _data(frame).get("error")
    text = frame.get("message") or nested or frame.get("code")
    return str(text) if text else "Unknown stream error"


class StreamAccumulator[R: StreamResult]:
    """Base class: dispatches frames to handlers and tracks shared fields."""

    app_type: ClassVar[AppType]
    result_type: ClassVar[type[StreamResult]]
    terminal_events: ClassVar[frozenset[str]] = frozenset()
    handlers: ClassVar[Mapping[str, str]] = {}

    def __init__(self) -> None:
        self.result: R = self.result_type()  # type: ignore[assignment]
        self._dispatch = {
            event: getattr(self, method) for event, method in self.handlers.items()
        }

    def handle(self, frame: Frame) -> bool:
        """Apply ``frame``; return True when it terminates the stream."""
        event = frame.get("event")
        if event == "ping":
            return False

        handler = self._dispatch.get(event)
        if handler is None:
            log.debug("Ignoring unhandled %s event: %s", self.app_type, event)
            return False

        self._track_ids(frame)
        handler(frame)
        return event in self.terminal_events

    def fail(self, frame: Frame) -> None:
        """Record an ``error`` frame before the decoder raises."""
        self._track_ids(frame)

    def finish(self) -> R:
        return self.result

    # --- Shared handlers ---

    def _track_ids(self, frame: Frame) -> None:
        for name in _ID_FIELDS:
            value = frame.get(name)
            if value and hasattr(self.result, name):
                setattr(self.result, name, value)
        if frame.get("created_at"):
            self.result.created_at = frame["created_at"]

    def _on_message(self, frame: Frame) -> None:
        answer = frame.get("answer")
        if answer:
            self.result.answer += answer
        if not frame.get("message_id") and frame.get("id"):
            self.result.message_id = frame["id"]

    def _on_message_replace(self, frame: Frame) -> None:
        answer = frame.get("answer")
        if answer is not None:
            self.result.answer = answer

    def _on_message_end(self, frame: Frame) -> None:
        if frame.get("metadata") is not None:
            self.result.metadata = frame["metadata"]
        if not frame.get("message_id") and frame.get("id"):
            self.result.message_id = frame["id"]

    def _on_tts_message(self, frame: Frame) -> None:
        chunk = frame.get("audio")
        if not chunk:
            return
        try:
            decoded = base64.b64decode(chunk, validate=True)
        except (binascii.Error, ValueError):
            log.warning("Skipping undecodable audio chunk in tts_message")
            return
        self.result.audio = (self.result.audio or b"") + decoded

    def _ignore(self, frame: Frame) -> None:  # noqa: ARG002
        pass


class ChatAccumulator(StreamAccumulator[ChatResult]):
    """Chatbot apps, including agent chat."""

    app_type = AppType.CHAT
    result_type = ChatResult
    terminal_events = frozenset({"message_end"})
    handlers = {
        "message": "_on_message",
        "agent_message": "_on_message",
        "message_replace": "_on_message_replace",
        "message_file": "_on_message_file",
        "tts_message": "_on_tts_message",
        "tts_message_end": "_ignore",
        "agent_thought": "_on_agent_thought",
        "message_end": "_on_message_end",
    }

    def _on_message_file(self, frame: Frame) -> None:
        if frame.get("id"):
            self.result.file_id = frame["id"]
        if frame.get("url"):
            self.result.file_url = frame["url"]

    def _on_agent_thought(self, frame: Frame) -> None:
        self.result.agent_thoughts.append(
            {key: value for key, value in frame.items() if key != "event"}
        )


class ChatflowAccumulator(ChatAccumulator):
    """Chatflow apps: chat events plus the underlying workflow run."""

    app_type = AppType.CHATFLOW
    result_type = ChatflowResult
    handlers = {
        "message": "_on_message",
        "message_replace": "_on_message_replace",
        "message_file": "_on_message_file",
        "tts_message": "_on_tts_message",
        "tts_message_end": "_ignore",
        "workflow_started": "_ignore",
        "node_started": "_ignore",
        "node_finished": "_on_node_finished",
        "workflow_finished": "_on_workflow_finished",
        "message_end": "_on_message_end",
    }

    def _on_node_finished(self, frame: Frame) -> None:
        outputs = _data(frame).get("outputs")
        if outputs:
            self.result.node_outputs.append(outputs)

    def _on_workflow_finished(self, frame: Frame) -> None:
        outputs = _data(frame).get("outputs")
        if outputs:
            self.result.workflow_output = outputs


class CompletionAccumulator(StreamAccumulator[CompletionResult]):
    """Text-generation apps."""

    app_type = AppType.COMPLETION
    result_type = CompletionResult
    terminal_events = frozenset({"message_end"})
    handlers = {
        "message": "_on_message",
        "message_replace": "_on_message_replace",
        "message_end": "_on_message_end",
        "tts_message": "_on_tts_message",
        "tts_message_end": "_ignore",
    }

    def _on_message(self, frame: Frame) -> None:
        super()._on_message(frame)
        if frame.get("answer"):
            self.result.text_chunks.append(frame["answer"])
        self.result.status = "succeeded"

    def _on_message_end(self, frame: Frame) -> None:
        super()._on_message_end(frame)
        self.result.status = "succeeded"

    def fail(self, frame: Frame) -> None:
        super().fail(frame)
        self.result.status = "failed"
        self.result.error = error_text(frame)


class WorkflowAccumulator(StreamAccumulator[WorkflowResult]):
    """Workflow apps; the run ends with ``workflow_finished``."""

    app_type = AppType.WORKFLOW
    result_type = WorkflowResult
    terminal_events = frozenset({"workflow_finished"})
    handlers = {
        "workflow_started": "_on_workflow_started",
        "node_started": "_ignore",
        "node_finished": "_on_node_finished",
        "text_chunk": "_on_text_chunk",
        "tts_message": "_on_tts_message",
        "tts_message_end": "_ignore",
        "workflow_finished": "_on_workflow_finished",
    }

    def _on_workflow_started(self, frame: Frame) -> None:
        data = _data(frame)
        if data.get("created_at"):
            self.result.created_at = data["created_at"]
        if not frame.get("workflow_run_id") and data.get("id"):
            self.result.workflow_run_id = data["id"]

    def _on_node_finished(self, frame: Frame) -> None:
        data = _data(frame)
        log.debug(
            "Workflow node finished: %s (%s)",
            data.get("title") or data.get("node_id"),
            data.get("status"),
        )
        if data.get("outputs"):
            self.result.node_outputs.append(data["outputs"])

    def _on_text_chunk(self, frame: Frame) -> None:
        data = _data(frame)
        text = data.get("text")
        if text:
            self.result.answer += text
            self.result.text_chunks.append(
                {
                    "text": text,
                    "from_variable_selector": data.get("from_variable_selector"),
                }
            )

    def _on_workflow_finished(self, frame: Frame) -> None:
        data = _data(frame)
        result = self.result
        result.outputs = data.get("outputs") or {}
        result.status = data.get("status") or "succeeded"
        result.error = data.get("error")
        result.total_steps = data.get("total_steps")
        result.total_tokens = data.get("total_tokens")
        result.elapsed_time = data.get("elapsed_time")
        result.finished_at = data.get("finished_at")

    def fail(self, frame: Frame) -> None:
        super().fail(frame)
        self.result.status = "failed"
        self.result.error = error_text(frame)


_ACCUMULATORS: dict[AppType, type[StreamAccumulator[Any]]] = {
    AppType.CHAT: ChatAccumulator,
    AppType.CHATFLOW: ChatflowAccumulator,
    AppType.COMPLETION: CompletionAccumulator,
    AppType.WORKFLOW: WorkflowAccumulator,
}


def create_accumulator(app_type: AppType | str) -> StreamAccumulator[Any]:
    """Return a fresh accumulator for ``app_type``."""
    try:
        return _ACCUMULATORS[AppType(app_type)]()
    except ValueError:
        raise ValueError(f"Unknown application type: {app_type!r}") from None
