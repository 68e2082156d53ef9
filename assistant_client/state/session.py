"""Chat session controller: conversation selection and streamed turns.

Coordinates the directory, the active timeline, and the stream client.
Every turn captures the conversation id and timeline it was started on;
streamed text is applied only while that pair is still the active one, so a
turn that completes after the user navigated away never leaks into another
conversation.

State machine per selection:
    EMPTY -> LOADING -> READY on selection change
    READY -> SENDING -> READY (success) or READY_WITH_ERROR (failure)
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from enum import Enum

from assistant_client.client.errors import (
    ChatClientError,
    StreamCancelledError,
    TurnInProgressError,
)
from assistant_client.client.http import ApiClient
from assistant_client.client.stream import StreamClient
from assistant_client.models.schemas import (
    ChatStreamRequest,
    ConversationDownload,
    Message,
    StreamFrame,
    TurnOutcome,
)
from assistant_client.notifications import Notifier
from assistant_client.state.directory import ConversationDirectory
from assistant_client.state.guard import FetchOnceGuard
from assistant_client.state.timeline import MessageTimeline

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    SENDING = "sending"
    READY_WITH_ERROR = "ready_with_error"


class _Turn:
    """An in-flight turn and the context it was started in."""

    def __init__(self, conversation_id: str, timeline: MessageTimeline, placeholder_id: str) -> None:
        self.conversation_id = conversation_id
        self.timeline = timeline
        self.placeholder_id = placeholder_id
        self.cancel = asyncio.Event()


class ChatSession:
    """Manages chat state for one user view.

    Args:
        api: Backend client for history and downloads.
        stream: Stream client used for turns.
        directory: Conversation directory refreshed after each turn.
        notifier: Surface for recoverable errors.
        cancel_on_switch: Cancel in-flight turns of a conversation when the
            user switches away from it.
    """

    def __init__(
        self,
        api: ApiClient,
        stream: StreamClient,
        directory: ConversationDirectory,
        notifier: Notifier,
        cancel_on_switch: bool = False,
    ) -> None:
        self._api = api
        self._stream = stream
        self.directory = directory
        self._notifier = notifier
        self._cancel_on_switch = cancel_on_switch
        self._history_guard = FetchOnceGuard("history")
        self._turns: dict[str, _Turn] = {}
        self._listeners: list[Callable[[], None]] = []

        self.active_id: str | None = None
        self.timeline = MessageTimeline()
        self.state = SessionState.EMPTY

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked after every visible state change."""
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in self._listeners:
            callback()

    @property
    def is_streaming(self) -> bool:
        return self.timeline.open_placeholder_id is not None

    def messages(self) -> list[tuple[str, str]]:
        return self.timeline.view()

    def _activate(self, conversation_id: str | None) -> None:
        previous = self.active_id
        if previous == conversation_id:
            return
        if previous:
            self._history_guard.release(previous)
            if self._cancel_on_switch:
                for turn in self._turns.values():
                    if turn.conversation_id == previous:
                        turn.cancel.set()
        self.active_id = conversation_id
        # Replace wholesale; never reuse another conversation's messages
        self.timeline = MessageTimeline(conversation_id)
        self.state = SessionState.EMPTY
        logger.debug(f"Active conversation {previous!r} -> {conversation_id!r}")
        self._changed()

    async def select_conversation(self, conversation_id: str | None) -> list[Message]:
        """Make a conversation active and load its history once.

        A falsy id clears the selection.
        """
        self._activate(conversation_id)
        if not self._history_guard.guard(conversation_id):
            return self.timeline.messages
        return await self.load_for_conversation(conversation_id)

    async def load_for_conversation(self, conversation_id: str) -> list[Message]:
        """Fetch persisted history and replace the timeline with it.

        Failures and empty results leave an empty timeline.
        """
        self._activate(conversation_id)
        timeline = self.timeline
        self.state = SessionState.LOADING
        self._changed()

        try:
            history = await self._api.get_conversation_history(conversation_id)
        except ChatClientError as e:
            logger.error(f"Failed to fetch conversation {conversation_id}: {e}")
            self._notifier.from_error(e, "Failed to load conversation")
            if self.timeline is timeline:
                timeline.clear()
                self.state = SessionState.READY_WITH_ERROR
                self._changed()
            return []
        except Exception:
            if self.timeline is timeline:
                self.state = SessionState.READY_WITH_ERROR
            raise

        if self.timeline is not timeline:
            logger.debug(f"Discarding history for {conversation_id}; selection changed")
            return []

        if history is not None and history.success:
            messages = timeline.replace(history.conversation)
        else:
            messages = timeline.replace([])
        self.state = SessionState.READY
        self._changed()
        return messages

    def new_chat(self) -> str:
        """Start a new conversation; the server creates it on first message."""
        conversation_id = str(uuid.uuid4())
        self._activate(conversation_id)
        # Nothing to fetch yet
        self._history_guard.guard(conversation_id)
        self.state = SessionState.READY
        self._changed()
        return conversation_id

    def _owns(self, turn: _Turn) -> bool:
        return self.active_id == turn.conversation_id and self.timeline is turn.timeline

    def _apply(self, turn: _Turn, frame: StreamFrame) -> None:
        if not frame.content:
            return
        if not self._owns(turn):
            logger.debug(f"Dropping fragment for inactive conversation {turn.conversation_id}")
            return
        if turn.timeline.append_to_placeholder(turn.placeholder_id, frame.content):
            self._changed()

    def _finish(self, turn: _Turn, state: SessionState) -> None:
        if self._owns(turn):
            self.state = state
        self._changed()

    async def send(self, text: str) -> bool:
        """Send one turn and stream the reply into the active timeline.

        Returns:
            Whether the turn completed successfully.
        """
        text = text.strip()
        if not text:
            return False

        conversation_id = self.active_id
        if not conversation_id:
            self._notifier.error("No chat selected", "Please select or create a chat first.")
            return False
        if self.state is SessionState.LOADING:
            self._notifier.warning("Conversation is loading", "Try again in a moment.")
            return False

        timeline = self.timeline
        try:
            placeholder_id = timeline.start_turn(text)
        except TurnInProgressError as e:
            self._notifier.warning(e.title, e.description)
            return False

        turn = _Turn(conversation_id, timeline, placeholder_id)
        self._turns[placeholder_id] = turn
        self.state = SessionState.SENDING

        try:
            request = ChatStreamRequest(message=text, session_id=conversation_id)
            self._changed()
            await self._stream.send(request, lambda frame: self._apply(turn, frame), turn.cancel)
        except StreamCancelledError:
            logger.info(f"Turn for {conversation_id} cancelled")
            timeline.seal_or_discard(placeholder_id, TurnOutcome.FAILURE)
            self._finish(turn, SessionState.READY)
            return False
        except ChatClientError as e:
            logger.error(f"Turn for {conversation_id} failed: {e}")
            timeline.seal_or_discard(placeholder_id, TurnOutcome.FAILURE)
            self._notifier.from_error(e, "Failed to send message")
            self._finish(turn, SessionState.READY_WITH_ERROR)
            return False
        except Exception:
            logger.exception(f"Turn for {conversation_id} failed unexpectedly")
            timeline.seal_or_discard(placeholder_id, TurnOutcome.FAILURE)
            if self._owns(turn):
                self.state = SessionState.READY_WITH_ERROR
            self._notifier.error("Failed to send message", "An unexpected error occurred.")
            raise
        finally:
            self._turns.pop(placeholder_id, None)

        timeline.seal_or_discard(placeholder_id, TurnOutcome.SUCCESS)
        self._finish(turn, SessionState.READY)
        await self.directory.refresh()
        self._changed()
        return True

    def cancel_active_turn(self) -> bool:
        """Cancel in-flight turns of the active conversation."""
        cancelled = False
        for turn in self._turns.values():
            if turn.conversation_id == self.active_id:
                turn.cancel.set()
                cancelled = True
        return cancelled

    async def download_active(self) -> ConversationDownload | None:
        if not self.active_id:
            self._notifier.error("No chat selected", "Please select a conversation to download.")
            return None
        try:
            download = await self._api.download_conversation(self.active_id)
        except ChatClientError as e:
            self._notifier.from_error(e, "Download failed")
            return None
        self._notifier.success(
            "Conversation downloaded", f"Saved as {download.filename}."
        )
        return download
