"""Application clients: Chatbot, Chatflow, Textgenerator and Workflow"""  # noqa: D415

from .base import AppFeatures, DifyClient
from .chat import ChatClient, Chatbot, Chatflow
from .completion import Textgenerator
from .workflow import Workflow

__all__ = [
    "AppFeatures",
    "ChatClient",
    "Chatbot",
    "Chatflow",
    "DifyClient",
    "Textgenerator",
    "Workflow",
]
