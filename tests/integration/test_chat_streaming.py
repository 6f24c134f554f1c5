"""Integration tests for SSE streaming chat endpoint.

Tests real streaming behavior with httpx AsyncClient and ASGITransport
against the actual FastAPI app. The agent service is replaced by a
FakeAgentService unless a test is marked ``requires_api_key``.

Requirements:
    - OPENAI_API_KEY or LLM_API_KEY environment variable for LLM tests
    - Tests marked with @pytest.mark.requires_api_key are skipped without key
"""

import json
import os
from unittest.mock import patch

import pytest
from httpx import AsyncClient

from src.agent.config import AgentConfig
from src.models.schemas import StreamChunk, StreamStatus
from tests.conftest import FakeAgentService


def has_api_key() -> bool:
    """Check if an LLM API key is configured."""
    key = os.environ.get("LLM_API_KEY") or os.environ.get("OPENAI_API_KEY", "")
    return bool(key and not key.isspace())


requires_api_key = pytest.mark.skipif(
    not has_api_key(),
    reason="LLM_API_KEY / OPENAI_API_KEY not set - skipping LLM integration test",
)

CONVERSATION = {
    "messages": [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello! How can I help?"},
        {"role": "user", "content": "Say hello again"},
    ]
}


async def _read_chunks(client: AsyncClient, body: dict) -> list[StreamChunk]:
    chunks: list[StreamChunk] = []
    async with client.stream("POST", "/chat/stream", json=body) as response:
        assert response.status_code == 200
        async for line in response.aiter_lines():
            if line.startswith("data: "):
                chunks.append(StreamChunk.model_validate_json(line.removeprefix("data: ")))
    return chunks


class TestStreamingEndpoint:
    """Integration tests for POST /chat/stream SSE endpoint."""

    async def test_stream_returns_sse_content_type(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Streaming endpoint returns text/event-stream media type."""
        async with async_client.stream("POST", "/chat/stream", json=CONVERSATION) as response:
            assert response.status_code == 200
            assert "text/event-stream" in response.headers["content-type"]
            assert response.headers["cache-control"] == "no-cache"

    async def test_chunks_are_valid_json(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Each SSE data chunk contains valid JSON matching StreamChunk schema."""
        async with async_client.stream("POST", "/chat/stream", json=CONVERSATION) as response:
            async for line in response.aiter_lines():
                if line.startswith("data: "):
                    data = json.loads(line.removeprefix("data: ").strip())
                    chunk = StreamChunk.model_validate(data)
                    assert isinstance(chunk.content, str)
                    assert isinstance(chunk.done, bool)

    async def test_event_sequence(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Received, one generating event per delta, then complete."""
        chunks = await _read_chunks(async_client, CONVERSATION)

        assert [c.status for c in chunks] == [
            StreamStatus.RECEIVED,
            StreamStatus.GENERATING,
            StreamStatus.GENERATING,
            StreamStatus.COMPLETE,
        ]
        assert [c.content for c in chunks[1:-1]] == ["Hello", ", world"]

    async def test_final_chunk_has_done_true(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Last chunk in stream has done=true to signal completion."""
        chunks = await _read_chunks(async_client, CONVERSATION)

        assert chunks[-1].done is True
        assert chunks[-1].error is None
        for chunk in chunks[:-1]:
            assert chunk.done is False, "Non-final chunks should have done=false"

    async def test_history_reaches_agent_in_order(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """The whole conversation is forwarded to the agent service."""
        await _read_chunks(async_client, CONVERSATION)

        messages, model = fake_agent_service.requests[0]
        assert [(m.role, m.content) for m in messages] == [
            (m["role"], m["content"]) for m in CONVERSATION["messages"]
        ]
        assert model is None

    async def test_model_is_forwarded(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """An explicit model override is passed to the agent service."""
        await _read_chunks(async_client, {**CONVERSATION, "model": "gpt-4o"})

        assert fake_agent_service.requests[0][1] == "gpt-4o"

    async def test_blank_model_means_default(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """A blank model string falls back to the service default."""
        await _read_chunks(async_client, {**CONVERSATION, "model": "  "})

        assert fake_agent_service.requests[0][1] is None

    async def test_completion_error_becomes_error_chunk(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """A model failure ends the stream with an error event."""
        fake_agent_service.chunks = ["partial"]
        fake_agent_service.error = "upstream timeout"

        chunks = await _read_chunks(async_client, CONVERSATION)

        final = chunks[-1]
        assert final.done is True
        assert final.status == StreamStatus.ERROR
        assert final.error == "upstream timeout"
        assert all(c.status != StreamStatus.COMPLETE for c in chunks)

    @requires_api_key
    async def test_content_chunks_have_text(self, async_client: AsyncClient) -> None:
        """Content chunks (done=false) contain actual response text.

        Requires a valid API key to get a real LLM response.
        """
        chunks = await _read_chunks(
            async_client,
            {"messages": [{"role": "user", "content": "Say the word 'hello' and nothing else"}]},
        )

        assert chunks[-1].status == StreamStatus.COMPLETE
        full_response = "".join(c.content for c in chunks if not c.done)
        assert len(full_response) > 0, "Expected non-empty response content"


class TestStreamingValidation:
    """Tests for rejected requests."""

    async def test_empty_history_returns_422(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """A request must carry at least one message."""
        response = await async_client.post("/chat/stream", json={"messages": []})

        assert response.status_code == 422
        assert "detail" in response.json()

    async def test_missing_messages_returns_422(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Missing messages field triggers validation error."""
        response = await async_client.post("/chat/stream", json={})

        assert response.status_code == 422

    async def test_unknown_role_returns_422(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Only user, assistant and system roles are accepted."""
        response = await async_client.post(
            "/chat/stream",
            json={"messages": [{"role": "ai", "content": "hi"}]},
        )

        assert response.status_code == 422

    async def test_invalid_json_returns_422(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Malformed JSON body returns 422 status."""
        response = await async_client.post(
            "/chat/stream",
            content="not valid json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    async def test_wrong_http_method_returns_405(self, async_client: AsyncClient) -> None:
        """GET request to POST endpoint returns 405 Method Not Allowed."""
        response = await async_client.get("/chat/stream")

        assert response.status_code == 405

    async def test_unconfigured_backend_returns_503(self, async_client: AsyncClient) -> None:
        """A missing API key is reported as service unavailable."""

        def unconfigured() -> None:
            AgentConfig(api_key="")

        with patch("src.api.chat.get_agent_service", side_effect=unconfigured):
            response = await async_client.post("/chat/stream", json=CONVERSATION)

        assert response.status_code == 503
        assert response.json()["detail"] == "Completion backend is not configured"


class TestServiceEndpoints:
    """Tests for health and CORS."""

    async def test_health_check(self, async_client: AsyncClient) -> None:
        """Health endpoint answers without touching the model backend."""
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "streaming-chat"}

    async def test_cors_headers_present(
        self, async_client: AsyncClient, fake_agent_service: FakeAgentService
    ) -> None:
        """Response includes CORS headers for cross-origin requests."""
        async with async_client.stream(
            "POST",
            "/chat/stream",
            json=CONVERSATION,
            headers={"Origin": "http://localhost:3000"},
        ) as response:
            assert "access-control-allow-origin" in response.headers
