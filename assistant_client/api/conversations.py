"""Conversation endpoints for the development backend."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from assistant_client.api.deps import get_store, require_auth
from assistant_client.api.store import ConversationStore

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
    dependencies=[Depends(require_auth)],
)


class CreateConversation(BaseModel):
    title: str | None = None


@router.get("")
async def list_conversations(store: ConversationStore = Depends(get_store)) -> dict:
    # Wrapped under "conversations", as the hosted backend does
    return {"conversations": store.list_summaries()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    body: CreateConversation,
    store: ConversationStore = Depends(get_store),
) -> dict:
    return store.create(title=body.title)


@router.get("/{session_id}")
async def get_conversation(
    session_id: str,
    store: ConversationStore = Depends(get_store),
) -> dict:
    messages = store.messages(session_id)
    return {
        "success": messages is not None,
        "session_id": session_id,
        "conversation": messages or [],
    }


@router.get("/{session_id}/download")
async def download_conversation(
    session_id: str,
    store: ConversationStore = Depends(get_store),
) -> PlainTextResponse:
    transcript = store.transcript(session_id)
    if transcript is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    return PlainTextResponse(
        transcript,
        headers={"Content-Disposition": f'attachment; filename="conversation-{session_id}.txt"'},
    )
