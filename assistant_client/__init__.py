"""Assistant Client - streaming chat client for a hosted conversational assistant.

Combines httpx for incremental HTTP streaming, Pydantic for wire validation,
NiceGUI for the browser interface, and FastAPI for a local development backend.

Components:
    - auth: one-time passcode sign-in and bearer credential propagation
    - client: HTTP transport, error taxonomy, and the chat stream decoder
    - state: conversation directory, message timeline, and session orchestration
    - models: wire and domain schemas
    - api: in-memory development backend
    - ui: web interface for chat interactions
"""

__version__ = "0.1.0"
