"""Conversation storage for the development backend."""

import threading
import uuid
from datetime import datetime, timezone

TITLE_LENGTH = 40


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationStore:
    """Thread-safe in-memory conversations keyed by session id."""

    def __init__(self) -> None:
        self._conversations: dict[str, dict] = {}
        self._lock = threading.Lock()

    def create(self, title: str | None = None, session_id: str | None = None) -> dict:
        session_id = session_id or str(uuid.uuid4())
        with self._lock:
            conversation = self._conversations.get(session_id)
            if conversation is None:
                timestamp = _now()
                conversation = {
                    "id": session_id,
                    "session_id": session_id,
                    "title": title,
                    "created_at": timestamp,
                    "updated_at": timestamp,
                    "messages": [],
                }
                self._conversations[session_id] = conversation
            return self._summary(conversation)

    def append(self, session_id: str, role: str, content: str) -> None:
        self.create(session_id=session_id)
        with self._lock:
            conversation = self._conversations[session_id]
            conversation["messages"].append({"role": role, "content": content})
            conversation["updated_at"] = _now()
            if not conversation["title"] and role == "user":
                conversation["title"] = content[:TITLE_LENGTH]

    def list_summaries(self) -> list[dict]:
        """Summaries, most recently updated first."""
        with self._lock:
            conversations = sorted(
                self._conversations.values(),
                key=lambda c: c["updated_at"],
                reverse=True,
            )
            return [self._summary(c) for c in conversations]

    def messages(self, session_id: str) -> list[dict] | None:
        with self._lock:
            conversation = self._conversations.get(session_id)
            if conversation is None:
                return None
            return list(conversation["messages"])

    def transcript(self, session_id: str) -> str | None:
        messages = self.messages(session_id)
        if messages is None:
            return None
        return "\n\n".join(f"{m['role'].upper()}: {m['content']}" for m in messages) + "\n"

    @staticmethod
    def _summary(conversation: dict) -> dict:
        return {k: v for k, v in conversation.items() if k != "messages"}
