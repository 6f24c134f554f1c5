"""FastAPI completion service for the chat client.

HTTP and streaming routes with async request handling.
Supports Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status, polled by the client before
      accepting submissions
    - POST /chat/stream: Streamed completion of a conversation history
"""
