"""Streaming chat completion endpoint.

Accepts a full conversation history and streams the reply back as
Server-Sent Events, one JSON-encoded StreamChunk per event.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from src.agent.chat_agent import AgentService, CompletionError, get_agent_service
from src.models.schemas import ChatRequest, StreamChunk, StreamStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def agent_service() -> AgentService:
    """Resolve the agent service for a request.

    Raises:
        HTTPException: 503 if the model backend is not configured.
    """
    try:
        return get_agent_service()
    except ValidationError as e:
        logger.error(f"Agent service is not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Completion backend is not configured",
        ) from e


def _sse(chunk: StreamChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


async def _event_stream(
    request: ChatRequest,
    service: AgentService,
) -> AsyncGenerator[str]:
    """Translate agent output into SSE events.

    Emits a ``received`` status event, one ``generating`` event per text
    delta, and a final ``done`` event carrying either ``complete`` or the
    error message.
    """
    yield _sse(StreamChunk(content="", done=False, status=StreamStatus.RECEIVED))

    try:
        async for content in service.stream_response(request.messages, model=request.model):
            yield _sse(
                StreamChunk(content=content, done=False, status=StreamStatus.GENERATING)
            )
    except CompletionError as e:
        logger.error(f"Streaming completion failed: {e}")
        yield _sse(
            StreamChunk(content="", done=True, status=StreamStatus.ERROR, error=str(e))
        )
        return

    yield _sse(StreamChunk(content="", done=True, status=StreamStatus.COMPLETE))


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    service: AgentService = Depends(agent_service),
) -> StreamingResponse:
    """Stream a chat completion for a conversation history.

    Args:
        request: Conversation history and optional model override.
        service: Agent service resolved per request.

    Returns:
        ``text/event-stream`` response of StreamChunk events.

    Raises:
        422: Empty history or invalid message role.
        503: Model backend not configured.
    """
    logger.info(
        f"Streaming completion for {len(request.messages)} messages "
        f"(model={request.model or service.default_model})"
    )
    return StreamingResponse(
        _event_stream(request, service),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
