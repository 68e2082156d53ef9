"""Request dependencies shared by the development backend routers."""

from fastapi import HTTPException, Request, status

from assistant_client.api.store import ConversationStore


def get_store(request: Request) -> ConversationStore:
    return request.app.state.store


def require_auth(request: Request) -> None:
    """Reject requests without a bearer token when auth is enforced."""
    if not request.app.state.require_auth:
        return
    header = request.headers.get("authorization", "")
    if not header.startswith("Bearer ") or not header[len("Bearer "):].strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )
