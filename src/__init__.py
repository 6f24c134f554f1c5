"""Streaming Chat - multi-session chat client for a streaming completion service.

Combines NiceGUI for the chat interface, httpx for consuming the SSE
completion stream, FastAPI and Agno for the completion service, and
Pydantic for models and configuration.

Components:
    - chat: session store, history sanitizer, completion client,
      stream reconciler, readiness gate and controller
    - api: HTTP endpoints and streaming responses
    - agent: LLM orchestration behind the streaming endpoint
    - ui: Web interface for chat interactions
    - models: Chat state and wire schemas
"""

__version__ = "0.1.0"
