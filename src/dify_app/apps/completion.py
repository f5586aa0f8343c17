"""Client for text-generation (completion) apps."""

from collections.abc import Mapping
from typing import Any

from ..client import RequestDescriptor  # noqa: TID252
from ..constants import (  # noqa: TID252
    COMPLETION_MESSAGES_ENDPOINT,
    COMPLETION_STOP_ENDPOINT,
    RESPONSE_MODE_STREAMING,
)
from ..exceptions import ValidationError  # noqa: TID252
from ..streaming import AppType, CompletionResult  # noqa: TID252
from .base import DifyClient


class Textgenerator(DifyClient):
    """Client for text-generation applications.

    The prompt goes in ``inputs["query"]``; other input variables of the app
    sit beside it.
    """

    app_type = AppType.COMPLETION
    stop_endpoint = COMPLETION_STOP_ENDPOINT

    def create_completion_message(
        self,
        inputs: Mapping[str, Any],
        user: str | None = None,
        *,
        response_mode: str = RESPONSE_MODE_STREAMING,
        files: list[dict[str, Any]] | None = None,
    ) -> CompletionResult | dict[str, Any]:
        """Generate text for ``inputs``.

        Raises:
            ValidationError: If ``inputs`` is not a mapping with a string ``query``.
        """
        if not isinstance(inputs, Mapping):
            raise ValidationError("inputs must be a mapping", field="inputs")
        query = inputs.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("inputs['query'] must be a non-empty string", field="query")

        payload = {
            "inputs": dict(inputs),
            "response_mode": self._validate_response_mode(response_mode),
            "user": self._resolve_user(user),
            "files": self._validate_files(files),
        }
        return self._submit(COMPLETION_MESSAGES_ENDPOINT, payload, response_mode)

    def submit_message_feedback(
        self,
        message_id: str,
        rating: str | None,
        user: str | None = None,
        content: str | None = None,
    ) -> dict[str, Any]:
        """Rate a generated message ``"like"`` or ``"dislike"``."""
        return self._message_feedback(message_id, rating, user, content)
