"""Chat stream client: one turn as an incrementally decoded SSE response.

The backend answers `POST /chat/stream` with lines of the form
`data: {"content": "...", "session_id": "...", "done": false}`. The
transport delivers arbitrarily chunked bytes, so decoding keeps two pieces
of state across reads: an incremental UTF-8 decoder (chunks may split a
multi-byte character) and a line buffer (chunks may split a line).

Frames are produced in wire order and never batched; consumers rebuild the
assistant reply by concatenating `content` fields.
"""

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

from pydantic import ValidationError

from assistant_client.client.errors import ProtocolError, StreamCancelledError
from assistant_client.client.http import ApiClient
from assistant_client.models.schemas import ChatStreamRequest, StreamFrame

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
STREAM_PATH = "/chat/stream"


def parse_frame_line(line: str) -> StreamFrame | None:
    """Parse one complete line.

    Returns:
        The frame, or None when the line is not a non-empty data line.

    Raises:
        ProtocolError: If the payload is not a valid frame.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    if not payload:
        return None
    try:
        return StreamFrame.model_validate_json(payload)
    except ValidationError as e:
        raise ProtocolError(f"Malformed frame {payload[:80]!r}: {e.error_count()} error(s)") from e


class FrameDecoder:
    """Turns arbitrarily chunked bytes into complete frames."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text held back because it does not yet end in a newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        """Decode a chunk and return the frames completed by it."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return self._parse(lines)

    def flush(self) -> list[StreamFrame]:
        """Parse whatever remains once the stream has ended.

        The last frame may arrive without a trailing newline.
        """
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if not tail.strip():
            return []
        return self._parse(tail.split("\n"))

    @staticmethod
    def _parse(lines: list[str]) -> list[StreamFrame]:
        frames = []
        for line in lines:
            try:
                frame = parse_frame_line(line)
            except ProtocolError as e:
                logger.warning(f"Skipping frame: {e}")
                continue
            if frame is not None:
                frames.append(frame)
        return frames


def _check_cancelled(cancel: asyncio.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise StreamCancelledError("The response was cancelled.")


class StreamClient:
    """Issues chat turns and yields their frames.

    Args:
        api: Authenticated API client used to open the stream.
        path: Stream endpoint path relative to the API base URL.
    """

    def __init__(self, api: ApiClient, path: str = STREAM_PATH) -> None:
        self._api = api
        self._path = path

    async def frames(
        self,
        request: ChatStreamRequest,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamFrame]:
        """Yield the frames of one turn in arrival order.

        Stops after a `done` frame or end of stream. The response is closed
        on every exit path, including an early `aclose()` by the consumer.

        Raises:
            TransportError: If the connection fails before or during the stream.
            HTTPStatusError: If the server answers with a non-2xx status.
            StreamCancelledError: If `cancel` is set while streaming.
        """
        _check_cancelled(cancel)
        decoder = FrameDecoder()
        delivered = 0

        async with self._api.stream("POST", self._path, json=request.model_dump()) as response:
            logger.debug(f"Stream opened for session {request.session_id}")
            async for chunk in response.aiter_bytes():
                _check_cancelled(cancel)
                for frame in decoder.feed(chunk):
                    delivered += 1
                    yield frame
                    if frame.done:
                        logger.debug(f"Stream done after {delivered} frame(s)")
                        return
                    _check_cancelled(cancel)

            for frame in decoder.flush():
                delivered += 1
                yield frame
                if frame.done:
                    break

        logger.debug(f"Stream closed after {delivered} frame(s)")

    async def send(
        self,
        request: ChatStreamRequest,
        on_chunk: Callable[[StreamFrame], None],
        cancel: asyncio.Event | None = None,
    ) -> int:
        """Stream one turn, calling `on_chunk` synchronously per frame.

        Returns:
            Number of frames delivered.
        """
        delivered = 0
        async with aclosing(self.frames(request, cancel)) as frames:
            async for frame in frames:
                on_chunk(frame)
                delivered += 1
        return delivered
