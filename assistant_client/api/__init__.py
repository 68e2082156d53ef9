"""In-memory development backend for the chat client.

Implements the backend's HTTP interface with FastAPI so the client can be
developed and tested without the hosted service.

Endpoints (mounted under /api):
    - POST /chat/stream: Server-Sent Events echo reply
    - GET /conversations: Conversation list
    - POST /conversations: Create a conversation
    - GET /conversations/{id}: Conversation history
    - GET /conversations/{id}/download: Plain-text transcript
    - GET /health: Service health status
"""
