"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - client_config: ChatClientConfig pointing at a fake service
    - ready_gate / closed_gate: Readiness gates in either state
    - scripted_client: Completion client replaying fixed fragments
    - queued_client: Completion client fed fragment by fragment
    - fake_agent_service: Agent service double for the SSE endpoint
    - async_client: HTTPX client for API testing

Completion doubles replace the network; everything else runs for real.
"""

import asyncio
from collections.abc import AsyncGenerator, Iterator, Sequence

import pytest
from httpx import ASGITransport, AsyncClient

from src.agent.chat_agent import CompletionError
from src.api.app import app
from src.api.chat import agent_service
from src.chat.config import ChatClientConfig
from src.chat.readiness import ReadinessGate
from src.models.schemas import ChatMessage, CompletionOptions, Fragment, Message

END_OF_STREAM = None


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ScriptedCompletionClient:
    """Completion client double that replays fixed fragments.

    Raises ``error`` after the fragments if one is given.
    """

    def __init__(
        self,
        fragments: Sequence[str | None] = (),
        error: Exception | None = None,
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.calls: list[tuple[list[Message], CompletionOptions]] = []

    async def probe(self) -> bool:
        return True

    async def start_completion(
        self,
        history: Sequence[Message],
        options: CompletionOptions,
    ) -> AsyncGenerator[Fragment, None]:
        self.calls.append((list(history), options))
        for text in self.fragments:
            yield Fragment(text=text)
        if self.error is not None:
            raise self.error


class QueuedCompletionClient:
    """Completion client double driven from the test through a queue.

    Put strings to deliver fragments, an exception to fail the stream,
    or END_OF_STREAM to finish it.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[str | Exception | None] = asyncio.Queue()
        self.calls: list[tuple[list[Message], CompletionOptions]] = []

    async def probe(self) -> bool:
        return True

    async def start_completion(
        self,
        history: Sequence[Message],
        options: CompletionOptions,
    ) -> AsyncGenerator[Fragment, None]:
        self.calls.append((list(history), options))
        while True:
            item = await self.queue.get()
            if item is END_OF_STREAM:
                return
            if isinstance(item, Exception):
                raise item
            yield Fragment(text=item)


class FakeAgentService:
    """Agent service double streaming fixed chunks."""

    default_model = "fake-model"

    def __init__(self, chunks: Sequence[str] = ("Hello", ", world"), error: str | None = None):
        self.chunks = list(chunks)
        self.error = error
        self.requests: list[tuple[list[ChatMessage], str | None]] = []

    async def stream_response(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
    ) -> AsyncGenerator[str]:
        self.requests.append((list(messages), model))
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise CompletionError(self.error)


@pytest.fixture
def client_config() -> ChatClientConfig:
    """Client configuration pointing at an in-process test server."""
    return ChatClientConfig(
        api_base_url="http://test",
        default_model="test-model",
        available_models=["test-model", "other-model"],
        readiness_poll_interval=0.01,
    )


@pytest.fixture
def ready_gate() -> ReadinessGate:
    """Readiness gate that is already open."""
    gate = ReadinessGate(probe=lambda: asyncio.sleep(0, result=True), poll_interval=0.01)
    gate.mark_ready()
    return gate


@pytest.fixture
def closed_gate() -> ReadinessGate:
    """Readiness gate whose probe never succeeds."""
    return ReadinessGate(probe=lambda: asyncio.sleep(0, result=False), poll_interval=0.01)


@pytest.fixture
def scripted_client() -> ScriptedCompletionClient:
    """Completion client answering "Hello"."""
    return ScriptedCompletionClient(["Hello"])


@pytest.fixture
def queued_client() -> QueuedCompletionClient:
    """Completion client fed by the test."""
    return QueuedCompletionClient()


@pytest.fixture
def fake_agent_service() -> Iterator[FakeAgentService]:
    """Install a FakeAgentService behind the SSE endpoint."""
    service = FakeAgentService()
    app.dependency_overrides[agent_service] = lambda: service
    yield service
    app.dependency_overrides.pop(agent_service, None)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
