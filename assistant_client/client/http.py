"""Authenticated HTTP client for the chat backend.

Wraps one `httpx.AsyncClient`. A request event hook attaches the bearer
credential and browser-equivalent cookies to every outbound request, so
individual calls never handle authentication themselves.
"""

import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic import ValidationError

from assistant_client.auth.credentials import CredentialBridge
from assistant_client.client.errors import ApplicationError, TransportError, raise_for_api_error
from assistant_client.config import ClientConfig, origin_of
from assistant_client.models.schemas import (
    Conversation,
    ConversationDownload,
    ConversationHistory,
)

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"""filename[^;=\n]*=((['"]).*?\2|[^;\n]*)""")


def extract_payload(data: Any) -> Any:
    """Unwrap the envelopes the backend may put around a payload.

    Accepts a bare value, `{"data": ...}` or `{"conversations": ...}`.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if "data" in data:
            return data["data"]
        if "conversations" in data:
            return data["conversations"]
    return data


def parse_history(data: Any) -> ConversationHistory | None:
    """Return conversation history from a direct or `data`-wrapped body.

    Raises:
        ValidationError: If a recognized body holds invalid messages.
    """
    if isinstance(data, dict):
        if "success" in data and "conversation" in data:
            return ConversationHistory.model_validate(data)
        inner = data.get("data")
        if isinstance(inner, dict) and "success" in inner and "conversation" in inner:
            return ConversationHistory.model_validate(inner)
    return None


def filename_from_disposition(header: str | None, conversation_id: str) -> str:
    """Pick the download filename from a Content-Disposition header."""
    filename = f"conversation-{conversation_id}.txt"
    if header:
        match = _FILENAME_RE.search(header)
        if match and match.group(1):
            candidate = re.sub(r"""['"]""", "", match.group(1)).strip()
            if candidate:
                filename = candidate
    return filename


class ApiClient:
    """Client for the chat backend REST and streaming endpoints.

    Args:
        config: Client configuration (base URL, timeout).
        bridge: Credential bridge consulted on every request.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        config: ClientConfig,
        bridge: CredentialBridge,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._bridge = bridge
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            headers={"Content-Type": "application/json"},
            timeout=config.request_timeout,
            transport=transport,
            event_hooks={"request": [self._authorize]},
        )

    async def _authorize(self, request: httpx.Request) -> None:
        self._bridge.attach(request.headers)
        cookies = self._bridge.cookie_header(origin_of(str(request.url)))
        if cookies:
            request.headers["Cookie"] = cookies
        logger.debug(f"{request.method} {request.url}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error on {method} {path}: {e}")
            raise TransportError(
                "Unable to connect to the server. Please check your connection."
            ) from e
        await raise_for_api_error(response)
        return response

    @asynccontextmanager
    async def stream(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming request; the response is closed on exit.

        Raises:
            TransportError: If the connection cannot be opened.
            HTTPStatusError: If the server answers with a non-2xx status.
        """
        try:
            async with self._client.stream(method, path, json=json) as response:
                await raise_for_api_error(response)
                yield response
        except httpx.RequestError as e:
            logger.error(f"Stream failed on {method} {path}: {e}")
            raise TransportError(
                "Unable to connect to the server. Please check your connection."
            ) from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApplicationError(
                f"Invalid JSON from {response.request.url.path}", response.status_code
            ) from e

    async def get_conversations(self) -> list[Conversation]:
        """Fetch all conversations of the authenticated user."""
        response = await self._request("GET", "/conversations")
        data = extract_payload(self._json(response))
        if not isinstance(data, list):
            logger.warning(f"Unexpected conversations payload: {type(data).__name__}")
            return []
        conversations = []
        for item in data:
            try:
                conversations.append(Conversation.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed conversation entry: {e.error_count()} error(s)")
        return conversations

    async def get_conversation_history(self, conversation_id: str) -> ConversationHistory | None:
        """Fetch the persisted messages of one conversation."""
        response = await self._request("GET", f"/conversations/{conversation_id}")
        try:
            return parse_history(self._json(response))
        except ValidationError as e:
            logger.error(f"Malformed history for {conversation_id}: {e.error_count()} error(s)")
            raise ApplicationError("Unexpected response format", response.status_code) from e

    async def create_conversation(self, title: str | None = None) -> Conversation:
        response = await self._request("POST", "/conversations", json={"title": title})
        data = extract_payload(self._json(response))
        if isinstance(data, dict) and ("id" in data or "session_id" in data):
            try:
                return Conversation.model_validate(data)
            except ValidationError as e:
                raise ApplicationError("Unexpected response format", response.status_code) from e
        raise ApplicationError("Unexpected response format", response.status_code)

    async def download_conversation(self, conversation_id: str) -> ConversationDownload:
        """Download a conversation transcript as raw bytes."""
        response = await self._request("GET", f"/conversations/{conversation_id}/download")
        filename = filename_from_disposition(
            response.headers.get("content-disposition"), conversation_id
        )
        return ConversationDownload(filename=filename, content=response.content)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
