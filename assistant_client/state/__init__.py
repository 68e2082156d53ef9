"""Client-side chat state.

Responsibilities:
    - Conversation directory with failure-tolerant refresh
    - Per-conversation message timelines with streamed placeholders
    - Session orchestration of selection, history loads, and turns
    - Fetch-once latching against duplicate initialization signals

Holds no UI code; the interface layer observes sessions through listeners.
"""

from assistant_client.state.directory import ConversationDirectory, conversation_title
from assistant_client.state.guard import FetchOnceGuard
from assistant_client.state.session import ChatSession, SessionState
from assistant_client.state.timeline import MessageTimeline

__all__ = [
    "ChatSession",
    "ConversationDirectory",
    "FetchOnceGuard",
    "MessageTimeline",
    "SessionState",
    "conversation_title",
]
