"""Error taxonomy for the chat client.

Every error carries a short title and a description suitable for a
toast-style notification, so the UI layer never has to inspect types to
decide what to show.
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class ChatClientError(Exception):
    """Base error for all client failures surfaced to the UI."""

    title = "Request failed"

    def __init__(self, description: str, *, title: str | None = None) -> None:
        super().__init__(description)
        self.description = description
        if title is not None:
            self.title = title


class TransportError(ChatClientError):
    """Request never reached the server or the connection dropped."""

    title = "Network error"


class HTTPStatusError(ChatClientError):
    """Server answered with a non-2xx status."""

    def __init__(self, description: str, status_code: int, *, title: str | None = None) -> None:
        super().__init__(description, title=title)
        self.status_code = status_code


class AuthorizationError(HTTPStatusError):
    """Missing, expired, or insufficient credential (401/403)."""

    title = "Authentication required"


class ApplicationError(HTTPStatusError):
    """Any other non-2xx response."""


class ProtocolError(ChatClientError):
    """A stream frame could not be decoded."""

    title = "Malformed stream frame"


class StreamCancelledError(ChatClientError):
    """An in-flight turn was cancelled cooperatively."""

    title = "Cancelled"


class TurnInProgressError(ChatClientError):
    """A turn was started while another placeholder is still open."""

    title = "Response in progress"


class StorageUnavailableError(ChatClientError):
    """Credential storage is disabled or rejected the write."""

    title = "Failed to save authentication"


class IdentityError(ChatClientError):
    """The identity provider rejected a sign-in request."""

    title = "Authentication failed"


def _body_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def error_for_response(response: httpx.Response) -> HTTPStatusError:
    """Map a non-2xx response to the error taxonomy.

    The response body must already be read.
    """
    status = response.status_code
    message = _body_message(response)

    if status == 401:
        return AuthorizationError(
            "Your session has expired. Please sign in again.", status
        )
    if status == 403:
        return AuthorizationError(
            "You do not have permission to perform this action.",
            status,
            title="Access denied",
        )
    if status == 404:
        return ApplicationError(
            message or "The requested resource could not be found.",
            status,
            title="Resource not found",
        )
    if status == 500:
        return ApplicationError(
            message or "An internal server error occurred. Please try again later.",
            status,
            title="Server error",
        )
    return ApplicationError(f"Error {status}: {message or 'An error occurred'}", status)


async def raise_for_api_error(response: httpx.Response) -> None:
    """Raise the mapped error for a non-2xx response.

    Args:
        response: Response, possibly still streaming.

    Raises:
        HTTPStatusError: If the status is not 2xx.
    """
    if response.is_success:
        return
    await response.aread()
    error = error_for_response(response)
    logger.error(f"API error {response.status_code} for {response.request.url.path}: {error}")
    raise error
