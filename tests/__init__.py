"""Test package for the assistant client.

Unit tests cover isolated logic; integration tests drive the real client
against the in-memory development backend.

Structure:
    - unit/: Decoder, timeline, guard, credential, and client tests
    - integration/: End-to-end turns through httpx ASGITransport

Leverages pytest with pytest-asyncio and pytest-check for soft assertions.
"""
