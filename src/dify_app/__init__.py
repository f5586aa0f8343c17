"""Client library for Dify chat, completion and workflow applications."""

import importlib.metadata
import logging

from dify_app.apps import (
    AppFeatures,
    Chatbot,
    ChatClient,
    Chatflow,
    DifyClient,
    Textgenerator,
    Workflow,
)
from dify_app.client import (
    BinaryPayload,
    CacheConfig,
    RateLimitConfig,
    RateLimiter,
    RequestDescriptor,
    RequestGateway,
    ResponseCache,
)
from dify_app.config import config_override, config_scope, resolve_config
from dify_app.exceptions import (
    ConfigurationError,
    DifyAppError,
    HTTPError,
    NetworkError,
    RateLimitExceeded,
    StreamProtocolError,
    TooManyRequestsError,
    ValidationError,
)
from dify_app.streaming import (
    AppType,
    ChatflowResult,
    ChatResult,
    CompletionResult,
    StreamEventDecoder,
    WorkflowResult,
)
from dify_app.telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("dify-app-client")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Application clients
    "Chatbot",
    "Chatflow",
    "Textgenerator",
    "Workflow",
    "DifyClient",
    "ChatClient",
    "AppFeatures",
    # Request pipeline
    "RequestGateway",
    "RequestDescriptor",
    "BinaryPayload",
    "RateLimiter",
    "RateLimitConfig",
    "ResponseCache",
    "CacheConfig",
    # Streaming
    "AppType",
    "StreamEventDecoder",
    "ChatResult",
    "ChatflowResult",
    "CompletionResult",
    "WorkflowResult",
    # Configuration
    "resolve_config",
    "config_scope",
    "config_override",
    # Errors
    "DifyAppError",
    "ValidationError",
    "ConfigurationError",
    "RateLimitExceeded",
    "HTTPError",
    "TooManyRequestsError",
    "StreamProtocolError",
    "NetworkError",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
]
