# src/simpleget/contracts/response.py
"""Response handle handed to callers.

A Response exposes status and headers captured when the response head
arrived, plus a one-shot async byte stream. Whether the stream is decoded
(gzip/deflate) or passed through untouched is recorded in content_encoding;
every other accessor behaves the same either way.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from types import TracebackType

import httpx


class Response:
    """Terminal response of a request, with a decoded body stream.

    Status and headers are plain attributes copied from the raw response, so
    they read the same before, during and after body consumption. The body
    can be iterated once; read() buffers it for repeated access. Exhausting
    the stream or calling aclose() releases the underlying connection.

    Errors while streaming the body (DecodeError, TransportError) are raised
    from aiter_bytes()/read(), not at construction.

    Example:
        async with response:
            async for chunk in response.aiter_bytes():
                sink.write(chunk)
    """

    def __init__(
        self,
        *,
        status_code: int,
        headers: httpx.Headers,
        url: str,
        stream: AsyncIterator[bytes],
        close: Callable[[], Awaitable[None]],
        reason_phrase: str = "",
        http_version: str = "HTTP/1.1",
        redirects: tuple[str, ...] = (),
        content_encoding: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.http_version = http_version
        self.headers = headers
        self.url = url
        self.redirects = redirects
        self.content_encoding = content_encoding
        self._stream = stream
        self._close = close
        self._content: bytes | None = None
        self._stream_consumed = False
        self._closed = False

    def __repr__(self) -> str:
        if self.reason_phrase:
            return f"<Response [{self.status_code} {self.reason_phrase}]>"
        return f"<Response [{self.status_code}]>"

    @property
    def is_redirect(self) -> bool:
        """3xx with a Location header (only seen when redirects are not followed)."""
        return 300 <= self.status_code < 400 and "location" in self.headers

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_stream_consumed(self) -> bool:
        return self._stream_consumed

    @property
    def content(self) -> bytes:
        if self._content is None:
            raise RuntimeError("Response body has not been read; await response.read() first")
        return self._content

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield decoded body chunks. Can only be iterated once.

        Leaving the loop early does not release the connection until the
        generator is finalized. Iterate inside `async with response:` (or call
        aclose()) to release it at the end of the block.
        """
        if self._content is not None:
            yield self._content
            return
        if self._stream_consumed:
            raise RuntimeError("Response body stream has already been consumed")
        if self._closed:
            raise RuntimeError("Response has been closed")
        self._stream_consumed = True
        try:
            async for chunk in self._stream:
                if chunk:
                    yield chunk
        finally:
            await self.aclose()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.aiter_bytes()

    async def read(self) -> bytes:
        """Read and buffer the whole decoded body."""
        if self._content is None:
            self._content = b"".join([chunk async for chunk in self.aiter_bytes()])
        return self._content

    async def aclose(self) -> None:
        """Release the connection without reading the rest of the body."""
        if not self._closed:
            self._closed = True
            try:
                # Stops a body stream abandoned mid-iteration
                close_stream = getattr(self._stream, "aclose", None)
                if close_stream is not None:
                    await close_stream()
            finally:
                await self._close()

    async def __aenter__(self) -> Response:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
