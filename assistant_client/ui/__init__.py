"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Passcode sign-in page
    - Conversation list and streamed message display
    - Download and sign-out actions

Contains minimal business logic. Delegates all state to `ChatSession`.
"""
