"""Agno agent service streaming chat completions.

Backs the ``/chat/stream`` SSE endpoint. The client sends the whole
conversation with every request, so the agent keeps no storage of its
own and every run is stateless.

Architecture Decisions:

1. **Agent per model** - Requests may name a model. Agents are created on
   first use per model id and cached; the configured default model is
   created eagerly so configuration errors surface at startup.

2. **Singleton Pattern** - The service and its agents are reused across
   requests rather than recreated per request.

3. **Content events only** - Agno streams run lifecycle events alongside
   content. Only ``RunContent`` events carry text deltas; a ``RunError``
   event or any exception becomes a :class:`CompletionError`.
"""

import logging
from collections.abc import AsyncGenerator, Sequence

from agno.agent import Agent
from agno.models.openai import OpenAIChat
from agno.run.agent import RunEvent

from src.agent.config import AgentConfig, get_agent_config
from src.models.schemas import ChatMessage

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when the model fails to produce a completion."""

    pass


class AgentService:
    """Service for streaming completions through Agno agents.

    Wraps Agno's Agent with:
    - One cached agent per requested model
    - A plain text-delta streaming interface for the SSE endpoint
    - Centralized error handling
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._agents: dict[str, Agent] = {}
        self._agents[self._config.model_name] = self._create_agent(self._config.model_name)

    @property
    def default_model(self) -> str:
        return self._config.model_name

    def _create_agent(self, model_id: str) -> Agent:
        """Create an Agno agent for one model.

        Args:
            model_id: Model identifier passed to the OpenAI-compatible API.

        Returns:
            Configured Agent without storage or knowledge.
        """
        model = OpenAIChat(
            id=model_id,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            timeout=self._config.request_timeout,
        )

        return Agent(
            model=model,
            description=self._config.system_prompt,
            # Output as markdown for rich formatting in UI
            markdown=True,
        )

    def _get_agent(self, model_id: str | None) -> Agent:
        model_id = model_id or self._config.model_name
        agent = self._agents.get(model_id)
        if agent is None:
            logger.info(f"Creating agent for model {model_id}")
            agent = self._create_agent(model_id)
            self._agents[model_id] = agent
        return agent

    async def stream_response(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
    ) -> AsyncGenerator[str]:
        """Stream response chunks for a conversation.

        Args:
            messages: Ordered conversation history, oldest first.
            model: Optional model override.

        Yields:
            Response text chunks as they arrive.

        Raises:
            CompletionError: If the model call fails.
        """
        agent = self._get_agent(model)
        history = [message.model_dump() for message in messages]

        try:
            async for event in agent.arun(history, stream=True):
                event_type = getattr(event, "event", None)
                if event_type == RunEvent.run_error:
                    raise CompletionError(getattr(event, "content", None) or "Model run failed")
                if event_type == RunEvent.run_content and event.content:
                    yield event.content
        except CompletionError:
            raise
        except Exception as e:
            logger.error(f"Completion failed for model {model or self.default_model}: {e}")
            raise CompletionError(str(e)) from e


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Returns:
        The AgentService instance.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
