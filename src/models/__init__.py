"""Pydantic models for chat state and the completion wire protocol.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Role / Message / Session: client-side chat state
    - Fragment / CompletionOptions: streaming completion client contract
    - ChatMessage / ChatRequest / StreamChunk: SSE endpoint payloads
"""

from src.models.schemas import (
    ChatMessage,
    ChatRequest,
    CompletionOptions,
    Fragment,
    Message,
    Role,
    Session,
    StreamChunk,
    StreamStatus,
    new_id,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "CompletionOptions",
    "Fragment",
    "Message",
    "Role",
    "Session",
    "StreamChunk",
    "StreamStatus",
    "new_id",
]
