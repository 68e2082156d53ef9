"""Ordered message timeline for one conversation.

A timeline is owned by the active conversation view and replaced wholesale
when the selection changes. While a turn is in flight it is append-only and
holds exactly one open assistant placeholder, which receives streamed text
until it is sealed (success) or discarded (failure).
"""

import itertools
import logging
import threading
import uuid
from collections.abc import Iterable

from assistant_client.client.errors import TurnInProgressError
from assistant_client.models.schemas import ConversationMessage, Message, Role, TurnOutcome

logger = logging.getLogger(__name__)


def _local_id() -> str:
    return uuid.uuid4().hex


class MessageTimeline:
    """Messages of one conversation in chronological order.

    Mutations are serialized by a lock so fragments from a stream are
    applied in call order even if callbacks run on other threads.

    Args:
        conversation_id: Conversation this timeline belongs to.
    """

    def __init__(self, conversation_id: str | None = None) -> None:
        self.conversation_id = conversation_id
        self._messages: list[Message] = []
        self._sequence = itertools.count(1)
        self._open_id: str | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> list[Message]:
        """Copies of the messages, safe to render while streaming continues."""
        with self._lock:
            return [m.model_copy() for m in self._messages]

    @property
    def open_placeholder_id(self) -> str | None:
        return self._open_id

    def view(self) -> list[tuple[str, str]]:
        """Ordered (role, text) pairs for the message renderer."""
        with self._lock:
            return [(m.role.value, m.content) for m in self._messages]

    def _find(self, local_id: str) -> Message | None:
        for message in self._messages:
            if message.local_id == local_id:
                return message
        return None

    def _new_message(self, role: Role, content: str, sealed: bool = True) -> Message:
        return Message(
            local_id=_local_id(),
            role=role,
            content=content,
            sequence=next(self._sequence),
            sealed=sealed,
        )

    def start_turn(self, user_text: str) -> str:
        """Append the user message and an open assistant placeholder.

        Returns:
            Local identifier of the placeholder.

        Raises:
            TurnInProgressError: If a placeholder is already open.
        """
        with self._lock:
            if self._open_id is not None:
                raise TurnInProgressError("Wait for the current response to finish.")
            self._messages.append(self._new_message(Role.USER, user_text))
            placeholder = self._new_message(Role.ASSISTANT, "", sealed=False)
            self._messages.append(placeholder)
            self._open_id = placeholder.local_id
            return placeholder.local_id

    def append_to_placeholder(self, placeholder_id: str, text: str) -> bool:
        """Concatenate text onto an open placeholder.

        Late fragments for a sealed or unknown placeholder are dropped.

        Returns:
            Whether the text was applied.
        """
        if not text:
            return False
        with self._lock:
            message = self._find(placeholder_id)
            if message is None or message.sealed:
                logger.warning(f"Dropping fragment for closed placeholder {placeholder_id}")
                return False
            message.content += text
            return True

    def seal(self, placeholder_id: str) -> bool:
        with self._lock:
            message = self._find(placeholder_id)
            if message is None or message.sealed:
                return False
            message.sealed = True
            if self._open_id == placeholder_id:
                self._open_id = None
            return True

    def discard(self, placeholder_id: str) -> bool:
        """Remove a placeholder, keeping the user message before it."""
        with self._lock:
            message = self._find(placeholder_id)
            if message is None:
                return False
            self._messages.remove(message)
            if self._open_id == placeholder_id:
                self._open_id = None
            return True

    def seal_or_discard(self, placeholder_id: str, outcome: TurnOutcome) -> bool:
        if outcome is TurnOutcome.SUCCESS:
            return self.seal(placeholder_id)
        return self.discard(placeholder_id)

    def replace(self, history: Iterable[ConversationMessage]) -> list[Message]:
        """Replace every message with persisted history.

        History carries no client identifiers, so fresh ones are assigned.
        """
        with self._lock:
            self._messages = [self._new_message(m.role, m.content) for m in history]
            self._open_id = None
            return [m.model_copy() for m in self._messages]

    def clear(self) -> None:
        with self._lock:
            self._messages = []
            self._open_id = None
