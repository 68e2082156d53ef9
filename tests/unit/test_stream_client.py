"""Unit tests for StreamClient against scripted byte streams."""

import asyncio
import json

import httpx
import pytest
import pytest_check as check

from assistant_client.auth.credentials import CredentialBridge
from assistant_client.client.errors import (
    ApplicationError,
    AuthorizationError,
    StreamCancelledError,
    TransportError,
)
from assistant_client.client.http import ApiClient
from assistant_client.client.stream import StreamClient
from assistant_client.models.schemas import ChatStreamRequest, StreamFrame
from tests.helpers import sse

REQUEST = ChatStreamRequest(message="hello", session_id="abc")


class TestSend:
    """Tests for StreamClient.send."""

    async def test_example_turn(self, make_stream_api, bridge: CredentialBridge) -> None:
        """Two frames reach on_chunk in order and concatenate to the reply."""
        bridge.publish("tok-123")
        api, stream, requests = make_stream_api(
            [
                b'data: {"content":"Hi","session_id":"abc"}\n',
                b'data: {"content":" there","session_id":"abc","done":true}\n',
            ]
        )
        received: list[StreamFrame] = []

        delivered = await StreamClient(api).send(REQUEST, received.append)

        check.equal(delivered, 2)
        check.equal("".join(f.content or "" for f in received), "Hi there")
        check.is_true(stream.closed)
        sent = requests[0]
        check.equal(sent.url.path, "/api/chat/stream")
        check.equal(json.loads(sent.content), {"message": "hello", "session_id": "abc"})
        check.equal(sent.headers["authorization"], "Bearer tok-123")

    async def test_byte_level_chunking_matches_whole(self, make_stream_api) -> None:
        """Per-byte delivery yields the same frames as one chunk."""
        body = sse({"content": "Grüße "}, {"content": "🌍", "done": True})
        whole_api, _, _ = make_stream_api([body])
        bytes_api, _, _ = make_stream_api([body[i : i + 1] for i in range(len(body))])
        whole: list[StreamFrame] = []
        split: list[StreamFrame] = []

        await StreamClient(whole_api).send(REQUEST, whole.append)
        await StreamClient(bytes_api).send(REQUEST, split.append)

        assert split == whole
        assert [f.content for f in split] == ["Grüße ", "🌍"]

    async def test_done_mid_buffer_halts_delivery(self, make_stream_api) -> None:
        """Frames buffered after a done frame are never delivered."""
        body = sse({"content": "a"}, {"content": "b", "done": True}, {"content": "late"})
        api, stream, _ = make_stream_api([body, sse({"content": "later"})])
        received: list[StreamFrame] = []

        await StreamClient(api).send(REQUEST, received.append)

        check.equal([f.content for f in received], ["a", "b"])
        check.equal(stream.yielded, 1)
        check.is_true(stream.closed)

    async def test_end_of_stream_without_done(self, make_stream_api) -> None:
        """Connection close terminates the turn and flushes the last line."""
        api, _, _ = make_stream_api([b'data: {"content": "a"}\n', b'data: {"content": "b"}'])
        received: list[StreamFrame] = []

        delivered = await StreamClient(api).send(REQUEST, received.append)

        assert delivered == 2
        assert [f.content for f in received] == ["a", "b"]

    async def test_malformed_frame_does_not_abort(self, make_stream_api) -> None:
        """A broken frame is skipped and the stream continues."""
        api, _, _ = make_stream_api(
            [b'data: {"content": "a"}\ndata: nope\n', b'data: {"content": "b", "done": true}\n']
        )
        received: list[StreamFrame] = []

        await StreamClient(api).send(REQUEST, received.append)

        assert [f.content for f in received] == ["a", "b"]


class TestErrors:
    """Tests for terminal failures."""

    async def test_server_error_status_raises(self, make_stream_api) -> None:
        """A 500 is raised with the server's message."""
        api, _, _ = make_stream_api([], status_code=500, body={"message": "model offline"})

        with pytest.raises(ApplicationError) as exc_info:
            await StreamClient(api).send(REQUEST, lambda frame: None)

        assert exc_info.value.status_code == 500
        assert exc_info.value.description == "model offline"

    async def test_unauthorized_status_raises_authorization_error(self, make_stream_api) -> None:
        """A 401 is surfaced distinctly from other failures."""
        api, _, _ = make_stream_api([], status_code=401, body={"detail": "expired"})

        with pytest.raises(AuthorizationError):
            await StreamClient(api).send(REQUEST, lambda frame: None)

    async def test_mid_stream_failure_releases_and_propagates(self, make_stream_api) -> None:
        """A read error after some frames is raised after closing the stream."""
        api, stream, _ = make_stream_api(
            [sse({"content": "partial"})], error=httpx.ReadError("connection reset")
        )
        received: list[StreamFrame] = []

        with pytest.raises(TransportError):
            await StreamClient(api).send(REQUEST, received.append)

        check.equal([f.content for f in received], ["partial"])
        check.is_true(stream.closed)

    async def test_connect_failure_raises_transport_error(self, config, bridge) -> None:
        """A request that never reaches the server is a transport error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with ApiClient(config, bridge, transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(TransportError) as exc_info:
                await StreamClient(api).send(REQUEST, lambda frame: None)

        assert exc_info.value.title == "Network error"

    async def test_callback_error_releases_stream(self, make_stream_api) -> None:
        """An exception from on_chunk still closes the response."""
        api, stream, _ = make_stream_api([sse({"content": "a"}, {"content": "b"})])

        def explode(frame: StreamFrame) -> None:
            raise RuntimeError("renderer crashed")

        with pytest.raises(RuntimeError):
            await StreamClient(api).send(REQUEST, explode)

        assert stream.closed


class TestCancellation:
    """Tests for cooperative cancellation."""

    async def test_cancel_after_first_frame(self, make_stream_api) -> None:
        """Setting the event stops delivery and closes the stream."""
        api, stream, _ = make_stream_api([sse({"content": "a"}, {"content": "b"}), sse({"content": "c"})])
        cancel = asyncio.Event()
        received: list[StreamFrame] = []

        def on_chunk(frame: StreamFrame) -> None:
            received.append(frame)
            cancel.set()

        with pytest.raises(StreamCancelledError):
            await StreamClient(api).send(REQUEST, on_chunk, cancel)

        check.equal([f.content for f in received], ["a"])
        check.is_true(stream.closed)

    async def test_cancelled_before_start_sends_nothing(self, make_stream_api) -> None:
        """An already-set event prevents the request."""
        api, _, requests = make_stream_api([sse({"content": "a"})])
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(StreamCancelledError):
            await StreamClient(api).send(REQUEST, lambda frame: None, cancel)

        assert requests == []

    async def test_early_consumer_exit_closes_stream(self, make_stream_api) -> None:
        """Closing the frame iterator early releases the response."""
        api, stream, _ = make_stream_api([sse({"content": "a"}, {"content": "b"})])

        frames = StreamClient(api).frames(REQUEST)
        first = await anext(frames)
        await frames.aclose()

        assert first.content == "a"
        assert stream.closed
