"""Streaming response decoding"""  # noqa: D415

from .accumulators import (
    AppType,
    ChatAccumulator,
    ChatflowAccumulator,
    CompletionAccumulator,
    StreamAccumulator,
    WorkflowAccumulator,
    create_accumulator,
)
from .decoder import StreamEventDecoder, decode_stream
from .results import (
    ChatflowResult,
    ChatResult,
    CompletionResult,
    StreamResult,
    WorkflowResult,
)

__all__ = [  # noqa: RUF022
    "AppType",
    "StreamEventDecoder",
    "decode_stream",
    # Accumulators
    "StreamAccumulator",
    "ChatAccumulator",
    "ChatflowAccumulator",
    "CompletionAccumulator",
    "WorkflowAccumulator",
    "create_accumulator",
    # Results
    "StreamResult",
    "ChatResult",
    "ChatflowResult",
    "CompletionResult",
    "WorkflowResult",
]
