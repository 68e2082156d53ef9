from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class TurnOutcome(str, Enum):
    """How a chat turn ended."""

    SUCCESS = "success"
    FAILURE = "failure"


class ChatStreamRequest(BaseModel):
    """Request payload for the chat stream endpoint.

    Attributes:
        message: User's question or prompt.
        session_id: Conversation the turn belongs to.
    """

    message: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamFrame(BaseModel):
    """One decoded `data:` frame of the chat stream.

    Attributes:
        content: Text fragment to append to the assistant reply.
        session_id: Conversation the frame belongs to.
        done: Whether this is the final frame of the turn.
    """

    content: str | None = None
    session_id: str | None = None
    done: bool = False


class Conversation(BaseModel):
    """A conversation as listed by the backend.

    Backends disagree on whether the stable key is `session_id` or `id`,
    so both are accepted (numeric ids become strings) and unknown fields
    are kept.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str | None = None
    session_id: str | None = None
    title: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def key(self) -> str | None:
        """Identifier used to address the conversation, preferring session_id."""
        return self.session_id or self.id

    def matches(self, conversation_id: str | None) -> bool:
        if not conversation_id:
            return False
        return conversation_id in (self.session_id, self.id)


class ConversationMessage(BaseModel):
    """A persisted message from conversation history."""

    role: Role
    content: str


class ConversationHistory(BaseModel):
    """Response body of the conversation history endpoint."""

    success: bool
    session_id: str | None = None
    conversation: list[ConversationMessage] = Field(default_factory=list)


class ConversationDownload(BaseModel):
    """A downloaded conversation transcript."""

    filename: str
    content: bytes

    def save(self, directory: Path) -> Path:
        """Write the transcript into a directory and return its path."""
        directory.mkdir(parents=True, exist_ok=True)
        # Never let a server-supplied name escape the target directory
        target = directory / Path(self.filename).name
        target.write_bytes(self.content)
        return target


class Message(BaseModel):
    """A message held by a timeline.

    Attributes:
        local_id: Client-generated identifier, never sent to the server.
        role: Speaker of the message.
        content: Message text (grows while a placeholder is open).
        sequence: Logical timestamp; strictly increasing within a timeline.
        created_at: Wall-clock creation time for display.
        sealed: Whether the message accepts no further content.
    """

    local_id: str
    role: Role
    content: str = ""
    sequence: int
    created_at: datetime = Field(default_factory=datetime.now)
    sealed: bool = True
