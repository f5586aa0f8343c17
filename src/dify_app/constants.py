"""
Project-wide constants for the Dify application client
"""  # noqa: D200, D212, D415

# ==============================================================================
# API and Network Configuration
# ==============================================================================

DEFAULT_BASE_URL = "https://api.dify.ai/v1"
NETWORK_TIMEOUT = 30.0  # seconds

# Sliding-window admission
RATE_LIMIT_WINDOW_MS = 60_000
RATE_LIMIT_MAX_REQUESTS = 60

# GET response cache
CACHE_TTL_MS = 300_000

# Encoded into the query string verbatim (encodeURIComponent's safe set)
QUERY_SAFE_CHARS = "-_.!~*'()"

REDACTION_MARKER = "[REDACTED]"

# ==============================================================================
# Response Modes and Stream Wire Format
# ==============================================================================

RESPONSE_MODE_STREAMING = "streaming"
RESPONSE_MODE_BLOCKING = "blocking"
RESPONSE_MODES = frozenset({RESPONSE_MODE_STREAMING, RESPONSE_MODE_BLOCKING})

SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# ==============================================================================
# Endpoints
# ==============================================================================

# Shared by every app type
INFO_ENDPOINT = "/info"
PARAMETERS_ENDPOINT = "/parameters"
SITE_ENDPOINT = "/site"
META_ENDPOINT = "/meta"
FILE_UPLOAD_ENDPOINT = "/files/upload"
TEXT_TO_AUDIO_ENDPOINT = "/text-to-audio"
MESSAGE_FEEDBACK_ENDPOINT = "/messages/{message_id}/feedbacks"

# Chat apps (Chatbot, Chatflow)
CHAT_MESSAGES_ENDPOINT = "/chat-messages"
CHAT_STOP_ENDPOINT = "/chat-messages/{task_id}/stop"
CONVERSATIONS_ENDPOINT = "/conversations"
CONVERSATION_ENDPOINT = "/conversations/{conversation_id}"
CONVERSATION_NAME_ENDPOINT = "/conversations/{conversation_id}/name"
CONVERSATION_VARIABLES_ENDPOINT = "/conversations/{conversation_id}/variables"
MESSAGES_ENDPOINT = "/messages"
SUGGESTED_QUESTIONS_ENDPOINT = "/messages/{message_id}/suggested"
AUDIO_TO_TEXT_ENDPOINT = "/audio-to-text"

# Text generation
COMPLETION_MESSAGES_ENDPOINT = "/completion-messages"
COMPLETION_STOP_ENDPOINT = "/completion-messages/{task_id}/stop"
APP_FEEDBACKS_ENDPOINT = "/app/feedbacks"

# Workflow
WORKFLOW_RUN_ENDPOINT = "/workflows/run"
WORKFLOW_RUN_DETAIL_ENDPOINT = "/workflows/run/{workflow_run_id}"
WORKFLOW_STOP_ENDPOINT = "/workflows/tasks/{task_id}/stop"
WORKFLOW_LOGS_ENDPOINT = "/workflows/logs"

# ==============================================================================
# Input Validation
# ==============================================================================

_MB = 1024 * 1024

MAX_UPLOAD_SIZE = 50 * _MB
FEEDBACK_RATINGS = frozenset({"like", "dislike"})
WORKFLOW_LOG_STATUSES = frozenset({"succeeded", "failed", "stopped", "running"})
MAX_PAGE_LIMIT = 100
DEFAULT_PAGE_LIMIT = 20
