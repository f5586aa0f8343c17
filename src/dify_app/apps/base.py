"""Shared facade for every Dify application type.

``DifyClient`` owns a ``RequestGateway`` and a ``StreamEventDecoder`` and
implements the operations common to all apps: application metadata, file
upload, text-to-speech and task stop. Subclasses add the app-specific calls
and pick the stream accumulator through ``app_type``.

Every public method validates its arguments first and raises
``ValidationError`` before touching the network.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
import mimetypes
from pathlib import Path
from typing import IO, Any, ClassVar, Self
from urllib.parse import quote

from ..client import (  # noqa: TID252
    BinaryPayload,
    RateLimiter,
    RequestDescriptor,
    RequestGateway,
    ResponseCache,
    Transport,
)
from ..config import ResolvedConfig, resolve_config  # noqa: TID252
from ..constants import (  # noqa: TID252
    APP_FEEDBACKS_ENDPOINT,
    DEFAULT_PAGE_LIMIT,
    FEEDBACK_RATINGS,
    FILE_UPLOAD_ENDPOINT,
    INFO_ENDPOINT,
    MAX_PAGE_LIMIT,
    MAX_UPLOAD_SIZE,
    MESSAGE_FEEDBACK_ENDPOINT,
    META_ENDPOINT,
    PARAMETERS_ENDPOINT,
    RESPONSE_MODE_STREAMING,
    RESPONSE_MODES,
    SITE_ENDPOINT,
    TEXT_TO_AUDIO_ENDPOINT,
)
from ..exceptions import DifyAppError, ValidationError  # noqa: TID252
from ..streaming import AppType, StreamEventDecoder, StreamResult  # noqa: TID252
from ..telemetry import TelemetryContextProtocol  # noqa: TID252

log = logging.getLogger(__name__)

type FileInput = str | Path | bytes | IO[bytes]

# Form control types Dify uses in ``user_input_form``
_INPUT_CONTROLS = ("text-input", "paragraph", "select", "number", "file", "file-list")


@dataclass(frozen=True)
class AppFeatures:
    """Capabilities parsed from ``GET /parameters``.

    ``user_input_form`` groups field specs by control type, keyed with
    underscores (``text_input``, ``file_list``).
    """

    opening_statement: str = ""
    suggested_questions: tuple[str, ...] = ()
    speech_to_text: bool = False
    text_to_speech: bool = False
    retriever_resource: bool = False
    annotation_reply: bool = False
    file_upload: Mapping[str, Any] = field(default_factory=dict)
    system_parameters: Mapping[str, Any] = field(default_factory=dict)
    user_input_form: Mapping[str, list[dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "AppFeatures":
        grouped: dict[str, list[dict[str, Any]]] = {}
        for item in parameters.get("user_input_form") or []:
            if not isinstance(item, Mapping):
                continue
            for control, spec in item.items():
                if control in _INPUT_CONTROLS and isinstance(spec, Mapping):
                    grouped.setdefault(control.replace("-", "_"), []).append(dict(spec))

        return cls(
            opening_statement=parameters.get("opening_statement") or "",
            suggested_questions=tuple(parameters.get("suggested_questions") or ()),
            speech_to_text=_enabled(parameters.get("speech_to_text")),
            text_to_speech=_enabled(parameters.get("text_to_speech")),
            retriever_resource=_enabled(parameters.get("retriever_resource")),
            annotation_reply=_enabled(parameters.get("annotation_reply")),
            file_upload=dict(parameters.get("file_upload") or {}),
            system_parameters=dict(parameters.get("system_parameters") or {}),
            user_input_form=grouped,
        )

    @property
    def required_inputs(self) -> tuple[str, ...]:
        """Variable names of required form fields."""
        return tuple(
            spec["variable"]
            for specs in self.user_input_form.values()
            for spec in specs
            if spec.get("required") and spec.get("variable")
        )


def _enabled(setting: Any) -> bool:
    if isinstance(setting, Mapping):
        return bool(setting.get("enabled"))
    return bool(setting)


def path_segment(value: str) -> str:
    """Quote an identifier for use inside a URL path."""
    return quote(str(value), safe="")


def require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string", field=field_name)
    return value


def validate_page_limit(limit: int | None, field_name: str = "limit") -> int | None:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_LIMIT:
        raise ValidationError(
            f"{field_name} must be an integer between 1 and {MAX_PAGE_LIMIT}",
            field=field_name,
        )
    return limit


class DifyClient:
    """Base client for one Dify application.

    Args:
        api_key: Application API key. Resolved from configuration when omitted.
        base_url: API base URL. Resolved from configuration when omitted.
        user: Default end-user identifier for user-scoped calls.
        config: Pre-resolved configuration; explicit arguments override it.
        gateway: Fully built gateway, bypassing configuration entirely.
        transport, rate_limiter, cache, telemetry: Gateway collaborators.
        max_upload_size: Largest file accepted by ``upload_file`` (bytes).
    """

    app_type: ClassVar[AppType]
    stop_endpoint: ClassVar[str]

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        user: str | None = None,
        config: ResolvedConfig | None = None,
        gateway: RequestGateway | None = None,
        transport: Transport | None = None,
        rate_limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        telemetry: TelemetryContextProtocol | None = None,
        max_upload_size: int = MAX_UPLOAD_SIZE,
    ):
        if gateway is None:
            overrides = {
                name: value
                for name, value in (("api_key", api_key), ("base_url", base_url), ("user", user))
                if value is not None
            }
            if config is None:
                config = resolve_config(overrides or None)
            elif overrides:
                config = config.with_overrides(**overrides)

            gateway = RequestGateway(
                config.api_key or "",
                config.base_url,
                transport=transport,
                rate_limiter=(
                    rate_limiter
                    if rate_limiter is not None
                    else RateLimiter(config.rate_limit_config())
                ),
                cache=cache if cache is not None else ResponseCache(config.cache_config()),
                timeout=config.timeout_seconds,
                telemetry=telemetry,
            )
            user = config.user

        self.gateway = gateway
        self.user = user
        self.max_upload_size = max_upload_size
        self.decoder = StreamEventDecoder(secrets=gateway.secrets())
        self._features: AppFeatures | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.gateway.base_url!r}, user={self.user!r})"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.gateway.close()

    # --- Application metadata ---

    def get_app_info(self) -> dict[str, Any]:
        """Basic application information (name, description, tags)."""
        return self.gateway.execute(RequestDescriptor("GET", INFO_ENDPOINT))

    def get_app_parameters(self) -> dict[str, Any]:
        """Input form, file upload and feature settings of the application."""
        return self.gateway.execute(RequestDescriptor("GET", PARAMETERS_ENDPOINT))

    def get_app_site(self) -> dict[str, Any]:
        """WebApp settings (title, icon, theme)."""
        return self.gateway.execute(RequestDescriptor("GET", SITE_ENDPOINT))

    def get_app_meta(self) -> dict[str, Any]:
        """Tool icons and other application metadata."""
        return self.gateway.execute(RequestDescriptor("GET", META_ENDPOINT))

    def get_app_feedbacks(
        self, page: int = 1, limit: int = DEFAULT_PAGE_LIMIT
    ) -> dict[str, Any]:
        """Feedback submitted for this application, paginated."""
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("page must be a positive integer", field="page")
        return self.gateway.execute(
            RequestDescriptor(
                "GET",
                APP_FEEDBACKS_ENDPOINT,
                params={"page": page, "limit": validate_page_limit(limit)},
            )
        )

    @property
    def app_features(self) -> AppFeatures:
        """Capabilities of the application, loaded on first access.

        A failed lookup is logged and yields empty defaults.
        """
        if self._features is None:
            try:
                parameters = self.get_app_parameters()
            except DifyAppError as e:
                log.warning("Could not load application features: %s", e)
                parameters = {}
            self._features = AppFeatures.from_parameters(
                parameters if isinstance(parameters, Mapping) else {}
            )
        return self._features

    # --- Files and audio ---

    def upload_file(
        self,
        file: FileInput,
        user: str | None = None,
        *,
        filename: str | None = None,
        mime_type: str | None = None,
    ) -> dict[str, Any]:
        """Upload a file for use in later messages or workflow inputs.

        Args:
            file: Path, raw bytes or a binary file object.
            user: End-user identifier; defaults to the client's user.
            filename: Name sent to the server; derived from a path when omitted.
            mime_type: Content type; guessed from the filename when omitted.

        Returns:
            The server's description of the stored file (including its ``id``).
        """
        actual_user = self._resolve_user(user)
        part = self._file_part(file, filename, mime_type)
        log.debug("Uploading %s (%d bytes)", part[0], len(part[1]))
        return self.gateway.execute(
            RequestDescriptor(
                "POST",
                FILE_UPLOAD_ENDPOINT,
                data={"user": actual_user},
                files={"file": part},
            )
        )

    def text_to_audio(
        self,
        text: str | None = None,
        *,
        message_id: str | None = None,
        user: str | None = None,
    ) -> BinaryPayload:
        """Synthesize speech for ``text`` or for an existing message."""
        if not text and not message_id:
            raise ValidationError("Either text or message_id is required", field="text")
        actual_user = self._resolve_user(user)

        payload: dict[str, Any] = {"user": actual_user}
        if message_id:
            payload["message_id"] = message_id
        if text:
            payload["text"] = text
        return self.gateway.fetch_bytes(
            RequestDescriptor("POST", TEXT_TO_AUDIO_ENDPOINT, json_body=payload)
        )

    def stop_task(self, task_id: str, user: str | None = None) -> dict[str, Any]:
        """Stop a running streaming task (only supported in streaming mode)."""
        require_text(task_id, "task_id")
        actual_user = self._resolve_user(user)
        return self.gateway.execute(
            RequestDescriptor(
                "POST",
                self.stop_endpoint.format(task_id=path_segment(task_id)),
                json_body={"user": actual_user},
            )
        )

    # --- Helpers for subclasses ---

    def _resolve_user(self, user: str | None) -> str:
        actual_user = user or self.user
        if not actual_user or not isinstance(actual_user, str):
            raise ValidationError(
                "A user identifier is required (pass user= or set DIFY_USER)",
                field="user",
            )
        return actual_user

    @staticmethod
    def _validate_response_mode(response_mode: str) -> str:
        if response_mode not in RESPONSE_MODES:
            raise ValidationError(
                f"response_mode must be one of {sorted(RESPONSE_MODES)}, got {response_mode!r}",
                field="response_mode",
            )
        return response_mode

    @staticmethod
    def _validate_inputs(inputs: Any) -> dict[str, Any]:
        if inputs is None:
            return {}
        if not isinstance(inputs, Mapping):
            raise ValidationError("inputs must be a mapping", field="inputs")
        return dict(inputs)

    @staticmethod
    def _validate_files(files: Sequence[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
        if files is None:
            return []
        if isinstance(files, str | bytes) or not isinstance(files, Sequence):
            raise ValidationError("files must be a list of file descriptors", field="files")
        for item in files:
            if not isinstance(item, Mapping):
                raise ValidationError("each file descriptor must be a mapping", field="files")
        return [dict(item) for item in files]

    def _submit(
        self, endpoint: str, payload: dict[str, Any], response_mode: str
    ) -> StreamResult | dict[str, Any]:
        """POST ``payload``; decode the event stream in streaming mode."""
        descriptor = RequestDescriptor("POST", endpoint, json_body=payload)
        if response_mode == RESPONSE_MODE_STREAMING:
            body = self.gateway.stream(descriptor)
            return self.decoder.decode(body, self.app_type)
        return self.gateway.execute(descriptor)

    def _message_feedback(
        self,
        message_id: str,
        rating: str | None,
        user: str | None,
        content: str | None,
    ) -> dict[str, Any]:
        require_text(message_id, "message_id")
        if rating is not None and rating not in FEEDBACK_RATINGS:
            raise ValidationError(
                'rating must be "like", "dislike" or None', field="rating"
            )
        payload: dict[str, Any] = {"rating": rating, "user": self._resolve_user(user)}
        if content:
            payload["content"] = content
        return self.gateway.execute(
            RequestDescriptor(
                "POST",
                MESSAGE_FEEDBACK_ENDPOINT.format(message_id=path_segment(message_id)),
                json_body=payload,
            )
        )

    def _file_part(
        self,
        file: FileInput,
        filename: str | None,
        mime_type: str | None,
    ) -> tuple[str, bytes, str]:
        """Read ``file`` into a multipart ``(filename, content, mime_type)`` tuple."""
        if file is None:
            raise ValidationError("file is required", field="file")

        if isinstance(file, str | Path):
            path = Path(file)
            if not path.is_file():
                raise ValidationError(f"File not found: {path}", field="file")
            self._check_upload_size(path.stat().st_size)
            content = path.read_bytes()
            filename = filename or path.name
        elif isinstance(file, bytes | bytearray):
            content = bytes(file)
        elif hasattr(file, "read"):
            content = file.read()
            if not isinstance(content, bytes):
                raise ValidationError("file object must be opened in binary mode", field="file")
            filename = filename or Path(getattr(file, "name", "") or "").name or None
        else:
            raise ValidationError(
                "file must be a path, bytes or a binary file object", field="file"
            )

        self._check_upload_size(len(content))
        filename = filename or "upload.bin"
        mime_type = mime_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return filename, content, mime_type

    def _check_upload_size(self, size: int) -> None:
        if size > self.max_upload_size:
            raise ValidationError(
                f"File is too large: {size} bytes "
                f"(limit {self.max_upload_size // (1024 * 1024)} MB)",
                field="file",
            )
