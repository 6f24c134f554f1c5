import uuid
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Generate an opaque identifier for sessions and messages."""
    return str(uuid.uuid4())


class Role(str, Enum):
    """Canonical message roles understood by the completion service."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single message held in a chat session.

    ``role`` accepts any string so that legacy or imported messages can be
    stored; only the :class:`Role` values are ever sent upstream.

    Attributes:
        id: Stable identifier used to locate the message while streaming.
        role: Speaker identifier.
        content: The message text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: str
    content: str = ""


class Session(BaseModel):
    """One independent conversation thread.

    Attributes:
        id: Immutable session identifier.
        title: Display title, changed by rename.
        messages: Ordered message history.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    title: str
    messages: list[Message] = Field(default_factory=list)


class Fragment(BaseModel):
    """An incremental text delta delivered while a completion streams."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None

    @property
    def delta(self) -> str:
        return self.text or ""


class CompletionOptions(BaseModel):
    """Options sent along with a completion request."""

    model: str
    stream: Literal[True] = True


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class ChatMessage(BaseModel):
    """A message as sent to the completion service.

    Attributes:
        role: The speaker identifier (user, assistant, or system).
        content: The message text.
    """

    role: Literal["user", "assistant", "system"] = Field(
        ..., description="Message role: 'user', 'assistant', or 'system'"
    )
    content: str = Field(..., description="The message content")


class ChatRequest(BaseModel):
    """Request payload for the streaming completion endpoint.

    Attributes:
        messages: Ordered conversation history, oldest first.
        model: Optional model identifier overriding the service default.
        stream: Always true; kept for wire compatibility.
    """

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str | None = None
    stream: bool = True

    @field_validator("model", mode="before")
    @classmethod
    def blank_model_is_default(cls, v: str | None) -> str | None:
        """Treat a blank model name as "use the service default"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text content of this chunk.
        done: Whether this is the final chunk.
        status: Current processing status (received, generating, complete, error).
        error: Error message if something went wrong.
    """

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None
