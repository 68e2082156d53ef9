"""Shared test helpers for building scripted chat streams."""

import json
from collections.abc import Iterable

import httpx


def sse(*frames: dict, separator: str = "\n") -> bytes:
    """Encode frames as `data:` lines."""
    return "".join(f"data: {json.dumps(frame, ensure_ascii=False)}{separator}" for frame in frames).encode()


class ChunkedStream(httpx.AsyncByteStream):
    """Response body that yields scripted chunks and records closing."""

    def __init__(self, chunks: Iterable[bytes], error: Exception | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.closed = False
        self.yielded = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            self.yielded += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True
