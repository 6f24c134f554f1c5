"""Streaming conversation state for the chat client.

Keeps multiple chat sessions consistent while replies stream in.

Responsibilities:
    - Session store with create/rename/delete/select
    - Sanitized history for completion requests
    - SSE completion client turning the stream into text fragments
    - Reconciliation of the displayed session with the store
    - Readiness gating before the completion service is reachable

Contains no rendering. The NiceGUI page in ``src.ui`` drives it through
:class:`ChatController`.
"""

from src.chat.completion import CompletionClient, TransportError
from src.chat.config import ChatClientConfig, get_chat_client_config
from src.chat.controller import ChatController
from src.chat.history import build_history
from src.chat.readiness import ReadinessGate
from src.chat.reconciler import (
    CANCELED_MARKER,
    ERROR_MARKER,
    StreamReconciler,
    SubmissionState,
)
from src.chat.store import SessionStore
from src.chat.view import DisplayedView

__all__ = [
    "CANCELED_MARKER",
    "ERROR_MARKER",
    "ChatClientConfig",
    "ChatController",
    "CompletionClient",
    "DisplayedView",
    "ReadinessGate",
    "SessionStore",
    "StreamReconciler",
    "SubmissionState",
    "TransportError",
    "build_history",
    "get_chat_client_config",
]
