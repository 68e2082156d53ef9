"""Streaming chat endpoint for the development backend.

Replies by echoing the user's message word by word as Server-Sent Events,
then sends a final `done` frame.
"""

import asyncio
import json
import logging
import re
import uuid
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from assistant_client.api.deps import get_store, require_auth
from assistant_client.api.store import ConversationStore
from assistant_client.models.schemas import ChatStreamRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"], dependencies=[Depends(require_auth)])


class ChatRequest(ChatStreamRequest):
    """Stream request as the backend accepts it; a missing session starts a new one."""

    session_id: str | None = None


def reply_chunks(message: str) -> list[str]:
    """Split the echo reply into word-sized fragments, keeping spaces."""
    return re.findall(r"\S+\s*", f"You said: {message}")


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    store: ConversationStore = Depends(get_store),
) -> StreamingResponse:
    """Stream an echo reply as `data:` frames."""
    session_id = request.session_id or str(uuid.uuid4())
    store.append(session_id, "user", request.message)
    logger.info(f"Streaming reply for session {session_id}")

    async def events() -> AsyncGenerator[str, None]:
        parts: list[str] = []
        for piece in reply_chunks(request.message):
            parts.append(piece)
            yield _sse({"content": piece, "session_id": session_id, "done": False})
            await asyncio.sleep(0)
        store.append(session_id, "assistant", "".join(parts))
        yield _sse({"content": "", "session_id": session_id, "done": True})

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
