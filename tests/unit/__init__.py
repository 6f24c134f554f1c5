"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - chat/: Session store, history sanitizer, reconciler, controller
    - chat/completion: SSE client against scripted transports
    - agent/: Agent configuration and event translation

Uses doubles for the completion service and the model provider.
Leverages pytest-check for multiple assertions per test.
"""
