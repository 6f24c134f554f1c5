"""Integration tests for components working together as a system.

Coverage:
    - API endpoints with real HTTP requests over ASGITransport
    - Completion client and controller against the real SSE endpoint
    - Agent responses with live LLM calls (when configured)

Only the model backend is replaced. Tests marked ``requires_api_key``
call the real provider and are skipped without a key.
"""
