"""Agno agent logic behind the streaming completion endpoint.

Responsibilities:
    - Agent initialization with OpenAI-compatible models
    - Per-request model selection
    - Streaming token generation from a client-supplied history

Maintains clean separation from the HTTP layer.
"""

from src.agent.chat_agent import AgentService, CompletionError, get_agent_service
from src.agent.config import AgentConfig, get_agent_config

__all__ = [
    "AgentConfig",
    "AgentService",
    "CompletionError",
    "get_agent_config",
    "get_agent_service",
]
