"""Streaming completion client.

Consumes the SSE stream from the completion service's ``/chat/stream``
endpoint and exposes it as an async iterator of text fragments.
"""

import logging
from collections.abc import AsyncIterator, Sequence

import httpx
from pydantic import ValidationError

from src.chat.config import ChatClientConfig, get_chat_client_config
from src.models.schemas import (
    ChatMessage,
    ChatRequest,
    CompletionOptions,
    Fragment,
    Message,
    StreamChunk,
)

logger = logging.getLogger(__name__)

HEALTH_PROBE_TIMEOUT = 5.0


class TransportError(Exception):
    """Raised when a completion stream cannot be opened or is interrupted."""

    pass


def _parse_chunk(line: str) -> StreamChunk:
    """Decode one ``data:`` line into a StreamChunk.

    Raises:
        TransportError: If the payload is not a valid chunk.
    """
    try:
        return StreamChunk.model_validate_json(line.removeprefix("data: ").strip())
    except ValidationError as e:
        raise TransportError(f"Malformed stream chunk: {e}") from e


class CompletionClient:
    """HTTP client for the streaming completion service."""

    def __init__(
        self,
        config: ChatClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Optional client configuration.
                    Loads from environment if not provided.
            transport: Optional httpx transport, used to route requests
                       somewhere other than the network.
        """
        self._config = config or get_chat_client_config()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
            transport=self._transport,
        )

    async def probe(self) -> bool:
        """Check whether the completion service is up.

        Returns:
            True if ``/health`` answered 200, False on any failure.
        """
        try:
            async with self._client() as client:
                response = await client.get("/health", timeout=HEALTH_PROBE_TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Health probe failed: {e}")
            return False
        return response.status_code == 200

    async def start_completion(
        self,
        history: Sequence[Message],
        options: CompletionOptions,
    ) -> AsyncIterator[Fragment]:
        """Stream a completion for a message history.

        The request is only sent once iteration starts. The iterator is
        single-pass; issue a new call to retry.

        Args:
            history: Non-empty ordered history to complete.
            options: Model selection and streaming flag.

        Yields:
            One fragment per content chunk, until the service reports done.

        Raises:
            TransportError: If the request is rejected, the connection drops,
                the service reports an error, or the stream ends early.
        """
        payload = ChatRequest(
            messages=[ChatMessage(role=m.role, content=m.content) for m in history],
            model=options.model,
            stream=options.stream,
        )

        try:
            async with (
                self._client() as client,
                client.stream(
                    "POST",
                    "/chat/stream",
                    json=payload.model_dump(mode="json"),
                    headers={"Accept": "text/event-stream"},
                ) as response,
            ):
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    chunk = _parse_chunk(line)
                    if chunk.error:
                        raise TransportError(f"Completion failed: {chunk.error}")
                    if chunk.done:
                        return
                    yield Fragment(text=chunk.content)
        except httpx.HTTPStatusError as e:
            raise TransportError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Connection failed: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request failed: {e}") from e

        raise TransportError("Stream ended before completion")
