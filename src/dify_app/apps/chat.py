"""Clients for conversational apps (Chatbot and Chatflow)."""

from typing import Any

from ..client import RequestDescriptor  # noqa: TID252
from ..constants import (  # noqa: TID252
    AUDIO_TO_TEXT_ENDPOINT,
    CHAT_MESSAGES_ENDPOINT,
    CHAT_STOP_ENDPOINT,
    CONVERSATION_ENDPOINT,
    CONVERSATION_NAME_ENDPOINT,
    CONVERSATION_VARIABLES_ENDPOINT,
    CONVERSATIONS_ENDPOINT,
    DEFAULT_PAGE_LIMIT,
    MESSAGES_ENDPOINT,
    RESPONSE_MODE_STREAMING,
    SUGGESTED_QUESTIONS_ENDPOINT,
)
from ..streaming import AppType, ChatResult  # noqa: TID252
from .base import DifyClient, FileInput, path_segment, require_text, validate_page_limit


class ChatClient(DifyClient):
    """Operations shared by Chatbot and Chatflow apps."""

    stop_endpoint = CHAT_STOP_ENDPOINT

    def send_message(
        self,
        query: str,
        user: str | None = None,
        *,
        inputs: dict[str, Any] | None = None,
        response_mode: str = RESPONSE_MODE_STREAMING,
        conversation_id: str | None = None,
        files: list[dict[str, Any]] | None = None,
        auto_generate_name: bool = True,
    ) -> ChatResult | dict[str, Any]:
        """Send ``query`` and return the answer.

        In streaming mode the event stream is decoded into a result record;
        in blocking mode the server's JSON response is returned as is.
        """
        require_text(query, "query")
        payload: dict[str, Any] = {
            "inputs": self._validate_inputs(inputs),
            "query": query,
            "response_mode": self._validate_response_mode(response_mode),
            "user": self._resolve_user(user),
            "files": self._validate_files(files),
            "auto_generate_name": bool(auto_generate_name),
        }
        if conversation_id:
            payload["conversation_id"] = conversation_id
        return self._submit(CHAT_MESSAGES_ENDPOINT, payload, response_mode)

    # --- Conversations ---

    def get_conversations(
        self,
        user: str | None = None,
        *,
        last_id: str | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        pinned: bool | None = None,
        sort_by: str | None = None,
    ) -> dict[str, Any]:
        """List the user's conversations, newest first by default."""
        params = {
            "user": self._resolve_user(user),
            "last_id": last_id,
            "limit": validate_page_limit(limit),
            "pinned": pinned,
            "sort_by": sort_by,
        }
        return self.gateway.execute(
            RequestDescriptor("GET", CONVERSATIONS_ENDPOINT, params=params)
        )

    def get_conversation_messages(
        self,
        conversation_id: str,
        user: str | None = None,
        *,
        first_id: str | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        """Message history of one conversation."""
        require_text(conversation_id, "conversation_id")
        params = {
            "user": self._resolve_user(user),
            "conversation_id": conversation_id,
            "first_id": first_id,
            "limit": validate_page_limit(limit),
        }
        return self.gateway.execute(
            RequestDescriptor("GET", MESSAGES_ENDPOINT, params=params)
        )

    def rename_conversation(
        self,
        conversation_id: str,
        name: str | None = None,
        user: str | None = None,
        *,
        auto_generate: bool = False,
    ) -> dict[str, Any]:
        """Rename a conversation, or let the server generate a name."""
        require_text(conversation_id, "conversation_id")
        if not auto_generate:
            require_text(name, "name")
        payload = {
            "name": name,
            "auto_generate": bool(auto_generate),
            "user": self._resolve_user(user),
        }
        return self.gateway.execute(
            RequestDescriptor(
                "POST",
                CONVERSATION_NAME_ENDPOINT.format(
                    conversation_id=path_segment(conversation_id)
                ),
                json_body=payload,
            )
        )

    def delete_conversation(
        self, conversation_id: str, user: str | None = None
    ) -> dict[str, Any]:
        require_text(conversation_id, "conversation_id")
        return self.gateway.execute(
            RequestDescriptor(
                "DELETE",
                CONVERSATION_ENDPOINT.format(conversation_id=path_segment(conversation_id)),
                json_body={"user": self._resolve_user(user)},
            )
        )

    def get_conversation_variables(
        self,
        conversation_id: str,
        user: str | None = None,
        *,
        last_id: str | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        variable_name: str | None = None,
    ) -> dict[str, Any]:
        """Variables captured in a conversation."""
        require_text(conversation_id, "conversation_id")
        params = {
            "user": self._resolve_user(user),
            "last_id": last_id,
            "limit": validate_page_limit(limit),
            "variable_name": variable_name,
        }
        return self.gateway.execute(
            RequestDescriptor(
                "GET",
                CONVERSATION_VARIABLES_ENDPOINT.format(
                    conversation_id=path_segment(conversation_id)
                ),
                params=params,
            )
        )

    # --- Messages ---

    def send_feedback(
        self,
        message_id: str,
        rating: str | None,
        user: str | None = None,
        content: str | None = None,
    ) -> dict[str, Any]:
        """Rate a message ``"like"`` or ``"dislike"`` (None clears the rating)."""
        return self._message_feedback(message_id, rating, user, content)

    def get_suggested_questions(
        self, message_id: str, user: str | None = None
    ) -> dict[str, Any]:
        require_text(message_id, "message_id")
        return self.gateway.execute(
            RequestDescriptor(
                "GET",
                SUGGESTED_QUESTIONS_ENDPOINT.format(message_id=path_segment(message_id)),
                params={"user": self._resolve_user(user)},
            )
        )

    def audio_to_text(
        self,
        file: FileInput,
        user: str | None = None,
        *,
        filename: str | None = None,
        mime_type: str | None = None,
    ) -> dict[str, Any]:
        """Transcribe an audio file (mp3, m4a, wav, webm, ...)."""
        actual_user = self._resolve_user(user)
        part = self._file_part(file, filename, mime_type)
        return self.gateway.execute(
            RequestDescriptor(
                "POST",
                AUDIO_TO_TEXT_ENDPOINT,
                data={"user": actual_user},
                files={"file": part},
            )
        )


class Chatbot(ChatClient):
    """Client for Chatbot (and agent chat) applications."""

    app_type = AppType.CHAT


class Chatflow(ChatClient):
    """Client for Chatflow (advanced chat) applications.

    Streaming results also carry the workflow run: ``workflow_run_id``,
    ``workflow_output`` and the ordered ``node_outputs``.
    """

    app_type = AppType.CHATFLOW
