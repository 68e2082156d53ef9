"""In-memory stand-ins for the backend client, stream client, and identity provider."""

import asyncio
from collections.abc import Callable

from assistant_client.auth.identity import AuthSession
from assistant_client.client.errors import ChatClientError, IdentityError, StreamCancelledError
from assistant_client.models.schemas import (
    ChatStreamRequest,
    Conversation,
    ConversationDownload,
    ConversationHistory,
    StreamFrame,
)


class FakeApi:
    """Scripted ApiClient replacement that counts calls."""

    def __init__(self) -> None:
        self.conversations: list[Conversation] = []
        self.histories: dict[str, ConversationHistory | None] = {}
        self.history_error: ChatClientError | None = None
        self.list_error: ChatClientError | None = None
        self.history_gate: asyncio.Event | None = None
        self.download: ConversationDownload | None = None
        self.download_error: ChatClientError | None = None
        self.list_calls = 0
        self.history_calls: list[str] = []

    async def get_conversations(self) -> list[Conversation]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.conversations)

    async def get_conversation_history(self, conversation_id: str) -> ConversationHistory | None:
        self.history_calls.append(conversation_id)
        if self.history_gate is not None:
            await self.history_gate.wait()
        if self.history_error is not None:
            raise self.history_error
        return self.histories.get(conversation_id)

    async def download_conversation(self, conversation_id: str) -> ConversationDownload:
        if self.download_error is not None:
            raise self.download_error
        assert self.download is not None
        return self.download


class ScriptedStream:
    """StreamClient replacement that replays frames.

    Args:
        frames: Frames delivered for every turn.
        error: Raised after the frames, if set.
        pause_after: Wait on `gate` once this many frames were delivered.
    """

    def __init__(
        self,
        frames: list[StreamFrame] | None = None,
        error: Exception | None = None,
        pause_after: int | None = None,
    ) -> None:
        self.frames = frames or []
        self.error = error
        self.pause_after = pause_after
        self.gate = asyncio.Event()
        self.paused = asyncio.Event()
        self.requests: list[ChatStreamRequest] = []

    async def send(
        self,
        request: ChatStreamRequest,
        on_chunk: Callable[[StreamFrame], None],
        cancel: asyncio.Event | None = None,
    ) -> int:
        self.requests.append(request)
        delivered = 0
        for frame in self.frames:
            if self.pause_after is not None and delivered == self.pause_after:
                self.paused.set()
                await self.gate.wait()
            if cancel is not None and cancel.is_set():
                raise StreamCancelledError("The response was cancelled.")
            on_chunk(frame)
            delivered += 1
        if self.error is not None:
            raise self.error
        return delivered


class RecordingProvider:
    """IdentityProvider that records calls and returns a fixed session."""

    def __init__(self, fail_sign_out: bool = False) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.fail_sign_out = fail_sign_out

    async def request_code(self, email: str) -> None:
        self.calls.append(("request_code", email))

    async def verify_code(self, email: str, code: str) -> AuthSession:
        self.calls.append(("verify_code", email, code))
        return AuthSession(access_token=f"jwt-{email.split('@')[0]}", email=email)

    async def sign_out(self, session: AuthSession) -> None:
        self.calls.append(("sign_out", session.access_token))
        if self.fail_sign_out:
            raise IdentityError("logout failed")
