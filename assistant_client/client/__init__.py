"""HTTP layer for the chat backend.

Responsibilities:
    - Authenticated httpx client with a request hook for the bearer credential
    - Mapping of transport and status failures onto a user-facing error taxonomy
    - Incremental decoding of the chat stream into ordered frames

Kept free of UI state; consumers receive frames and typed errors.
"""
