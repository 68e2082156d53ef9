"""Unit tests for ApiClient and response helpers."""

import httpx
import pytest
import pytest_check as check

from assistant_client.auth.credentials import CredentialBridge
from assistant_client.client.errors import (
    ApplicationError,
    AuthorizationError,
    TransportError,
    error_for_response,
)
from assistant_client.client.http import (
    ApiClient,
    extract_payload,
    filename_from_disposition,
    parse_history,
)
from assistant_client.config import ClientConfig


@pytest.fixture
async def make_api(config: ClientConfig, bridge: CredentialBridge):
    """Factory for an ApiClient backed by a request handler."""
    clients: list[ApiClient] = []

    def factory(handler) -> ApiClient:
        api = ApiClient(config, bridge, transport=httpx.MockTransport(handler))
        clients.append(api)
        return api

    yield factory
    for api in clients:
        await api.aclose()


class TestExtractPayload:
    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ([{"id": "a"}], [{"id": "a"}]),
            ({"data": [{"id": "a"}]}, [{"id": "a"}]),
            ({"conversations": [{"id": "a"}]}, [{"id": "a"}]),
            ({"other": 1}, {"other": 1}),
            (None, None),
        ],
    )
    def test_envelopes(self, body, expected) -> None:
        assert extract_payload(body) == expected


class TestParseHistory:
    def test_direct(self) -> None:
        history = parse_history(
            {"success": True, "session_id": "abc", "conversation": [{"role": "user", "content": "hi"}]}
        )

        assert history is not None
        assert history.conversation[0].content == "hi"

    def test_wrapped(self) -> None:
        history = parse_history({"data": {"success": True, "conversation": []}})

        assert history is not None
        assert history.success is True

    @pytest.mark.parametrize("body", [{}, {"data": []}, [], "text"])
    def test_unrecognized(self, body) -> None:
        assert parse_history(body) is None


class TestFilenameFromDisposition:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ('attachment; filename="trip.txt"', "trip.txt"),
            ("attachment; filename=notes.md", "notes.md"),
            ("attachment; filename='quoted.txt'; size=10", "quoted.txt"),
            ("attachment", "conversation-abc.txt"),
            (None, "conversation-abc.txt"),
            ('attachment; filename=""', "conversation-abc.txt"),
        ],
    )
    def test_filename(self, header: str | None, expected: str) -> None:
        assert filename_from_disposition(header, "abc") == expected


class TestErrorForResponse:
    """Status code to error mapping."""

    def _response(self, status: int, body: dict | None = None) -> httpx.Response:
        request = httpx.Request("GET", "http://test/api/conversations")
        return httpx.Response(status, json=body or {}, request=request)

    def test_unauthorized(self) -> None:
        error = error_for_response(self._response(401))

        check.is_instance(error, AuthorizationError)
        check.equal(error.title, "Authentication required")
        check.equal(error.description, "Your session has expired. Please sign in again.")

    def test_forbidden(self) -> None:
        error = error_for_response(self._response(403))

        assert isinstance(error, AuthorizationError)
        assert error.title == "Access denied"

    def test_not_found_uses_server_message(self) -> None:
        error = error_for_response(self._response(404, {"detail": "Conversation not found"}))

        assert error.title == "Resource not found"
        assert error.description == "Conversation not found"

    def test_server_error_default(self) -> None:
        error = error_for_response(self._response(500))

        assert error.title == "Server error"
        assert "internal server error" in error.description

    def test_other_status(self) -> None:
        error = error_for_response(self._response(418, {"error": "teapot"}))

        assert isinstance(error, ApplicationError)
        assert error.description == "Error 418: teapot"
        assert error.status_code == 418


class TestApiClient:
    """Tests for requests issued through ApiClient."""

    async def test_conversations_with_credentials(self, make_api, bridge: CredentialBridge) -> None:
        """Every request carries the bearer header and same-origin cookies."""
        bridge.publish("tok-123")
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": [{"session_id": "a", "title": "First"}]})

        conversations = await make_api(handler).get_conversations()

        check.equal([c.title for c in conversations], ["First"])
        sent = requests[0]
        check.equal(sent.url.path, "/api/conversations")
        check.equal(sent.headers["authorization"], "Bearer tok-123")
        check.is_in("auth_token=tok-123", sent.headers["cookie"])

    async def test_unexpected_shape_is_empty(self, make_api) -> None:
        api = make_api(lambda request: httpx.Response(200, json={"unexpected": True}))

        assert await api.get_conversations() == []

    async def test_unauthenticated_request_is_sent(self, make_api) -> None:
        """A missing token is not an error on the client side."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=[])

        await make_api(handler).get_conversations()

        assert "authorization" not in requests[0].headers

    async def test_status_error(self, make_api) -> None:
        api = make_api(lambda request: httpx.Response(401, json={"detail": "Missing bearer token"}))

        with pytest.raises(AuthorizationError):
            await api.get_conversations()

    async def test_invalid_json(self, make_api) -> None:
        api = make_api(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ApplicationError, match="Invalid JSON"):
            await api.get_conversations()

    async def test_network_error(self, make_api) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError):
            await make_api(handler).get_conversation_history("abc")

    async def test_download(self, make_api) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/conversations/abc/download"
            return httpx.Response(
                200,
                content=b"user: hi\n",
                headers={"content-disposition": 'attachment; filename="hi.txt"'},
            )

        download = await make_api(handler).download_conversation("abc")

        assert download.filename == "hi.txt"
        assert download.content == b"user: hi\n"

    async def test_create_conversation(self, make_api) -> None:
        api = make_api(lambda request: httpx.Response(201, json={"session_id": "new", "title": None}))

        conversation = await api.create_conversation()

        assert conversation.key == "new"

    async def test_create_conversation_bad_body(self, make_api) -> None:
        api = make_api(lambda request: httpx.Response(201, json={"ok": True}))

        with pytest.raises(ApplicationError, match="Unexpected response format"):
            await api.create_conversation()

    async def test_malformed_conversation_entries_are_skipped(self, make_api) -> None:
        """Numeric ids are kept as strings; entries that cannot be read are dropped."""
        api = make_api(
            lambda request: httpx.Response(
                200, json=[{"id": 42}, "junk", {"id": "b", "title": {"nested": True}}]
            )
        )

        conversations = await api.get_conversations()

        assert [c.key for c in conversations] == ["42"]

    async def test_history_with_unknown_role(self, make_api) -> None:
        body = {
            "success": True,
            "session_id": "abc",
            "conversation": [{"role": "system", "content": "be brief"}],
        }
        api = make_api(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ApplicationError, match="Unexpected response format") as exc_info:
            await api.get_conversation_history("abc")

        assert exc_info.value.status_code == 200
