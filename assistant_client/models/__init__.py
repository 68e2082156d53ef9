"""Pydantic models for the chat wire protocol and client state.

Provides validation for everything that crosses the network boundary and
the message records held by timelines.

Models:
    - ChatStreamRequest: Outgoing chat turn payload
    - StreamFrame: One decoded frame of the chat stream
    - Conversation: Directory entry for a past conversation
    - ConversationHistory: Persisted messages of one conversation
    - ConversationDownload: Downloaded transcript
    - Message: Timeline entry with a local identifier
"""

from assistant_client.models.schemas import (
    ChatStreamRequest,
    Conversation,
    ConversationDownload,
    ConversationHistory,
    ConversationMessage,
    Message,
    Role,
    StreamFrame,
    TurnOutcome,
)

__all__ = [
    "ChatStreamRequest",
    "Conversation",
    "ConversationDownload",
    "ConversationHistory",
    "ConversationMessage",
    "Message",
    "Role",
    "StreamFrame",
    "TurnOutcome",
]
