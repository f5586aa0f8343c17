"""Result records produced by decoding a streaming response.

One record is created per streaming call and mutated by its accumulator as
frames arrive. ``to_dict()`` gives the plain-dict view.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(slots=True)
class StreamResult:
    """Fields shared by every application type."""

    answer: str = ""
    message_id: str | None = None
    task_id: str | None = None
    created_at: Any = None
    metadata: dict[str, Any] | None = None
    audio: bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ChatResult(StreamResult):
    """Outcome of a Chatbot message."""

    conversation_id: str | None = None
    file_id: str | None = None
    file_url: str | None = None
    agent_thoughts: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ChatflowResult(ChatResult):
    """Outcome of a Chatflow message, including its workflow run."""

    workflow_run_id: str | None = None
    workflow_output: dict[str, Any] = field(default_factory=dict)
    node_outputs: list[Any] = field(default_factory=list)


@dataclass(slots=True)
class CompletionResult(StreamResult):
    """Outcome of a text-generation request."""

    status: str = ""
    error: str | None = None
    text_chunks: list[str] = field(default_factory=list)

    @property
    def combined_text(self) -> str:
        return self.answer

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["combined_text"] = self.combined_text
        return data


@dataclass(slots=True)
class WorkflowResult(StreamResult):
    """Outcome of a workflow run."""

    workflow_run_id: str | None = None
    status: str = ""
    outputs: dict[str, Any] = field(default_factory=dict)
    node_outputs: list[Any] = field(default_factory=list)
    error: str | None = None
    text_chunks: list[dict[str, Any]] = field(default_factory=list)
    total_steps: int | None = None
    total_tokens: int | None = None
    elapsed_time: float | None = None
    finished_at: Any = None
