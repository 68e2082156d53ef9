"""Integration tests for complete chat workflows.

Scenarios:
    - Streaming endpoint protocol of the development backend
    - Full turns through ChatSession, including directory refresh
    - History loading, downloads, and authorization failures

Uses the real FastAPI development backend over ASGITransport. No mocks.
"""
