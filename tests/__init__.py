"""Test package for Streaming Chat.

Provides test coverage for all components with unit tests for isolated
logic and integration tests for workflows.

Structure:
    - unit/: Individual function and class tests
    - integration/: End-to-end workflow tests over the ASGI app

Completion doubles live in conftest.py. Integration tests talk to the real
FastAPI app in-process and only replace the model backend.
Leverages pytest with pytest-check for soft assertions.
"""
