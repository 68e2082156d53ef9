"""Conversation directory: the user's past conversations.

Refreshed once on initial load (through a fetch-once guard) and after every
completed turn, so newly created threads show up. No timer, no cache beyond
the current in-memory list.
"""

import logging

from assistant_client.client.errors import ChatClientError
from assistant_client.client.http import ApiClient
from assistant_client.models.schemas import Conversation
from assistant_client.notifications import Notifier
from assistant_client.state.guard import FetchOnceGuard

logger = logging.getLogger(__name__)

UNTITLED_TITLE = "Untitled Chat"
_INITIAL_LOAD_KEY = "conversations"


def conversation_title(conversation: Conversation) -> str:
    """Display title: stored title, else `Chat <first 8 chars of id>`."""
    if conversation.title:
        return conversation.title
    key = conversation.key
    if key:
        return f"Chat {key[:8]}"
    return UNTITLED_TITLE


class ConversationDirectory:
    """In-memory list of conversations with failure-tolerant refresh.

    Args:
        api: Backend client.
        notifier: Receives a notification when a refresh fails.
    """

    def __init__(self, api: ApiClient, notifier: Notifier) -> None:
        self._api = api
        self._notifier = notifier
        self._guard = FetchOnceGuard("directory")
        self.conversations: list[Conversation] = []
        self.error: str | None = None
        self.loading = False

    async def list_conversations(self) -> list[Conversation]:
        """Fetch the full list from the server.

        A failed fetch keeps the previous list and reports the error.
        """
        self.loading = True
        self.error = None
        try:
            conversations = await self._api.get_conversations()
        except ChatClientError as e:
            logger.error(f"Failed to fetch conversations: {e}")
            self.error = e.description
            self._notifier.from_error(e, "Failed to load conversations")
            return self.conversations
        finally:
            self.loading = False

        self.conversations = conversations
        logger.info(f"Loaded {len(conversations)} conversation(s)")
        return self.conversations

    async def load_once(self) -> bool:
        """Initial load; duplicate calls are ignored.

        Returns:
            Whether this call performed the fetch.
        """
        if not self._guard.guard(_INITIAL_LOAD_KEY):
            return False
        await self.list_conversations()
        return True

    async def refresh(self) -> list[Conversation]:
        return await self.list_conversations()

    def find(self, conversation_id: str | None) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.matches(conversation_id):
                return conversation
        return None

    def title_for(self, conversation_id: str) -> str:
        conversation = self.find(conversation_id)
        if conversation is None:
            return conversation_title(Conversation(session_id=conversation_id))
        return conversation_title(conversation)
