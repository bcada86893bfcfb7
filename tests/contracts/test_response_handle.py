"""Tests for the caller-facing Response handle."""

from collections.abc import AsyncIterator

import httpx
import pytest

from simpleget.contracts import Response


class _Closer:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


def _response(*parts: bytes, status_code: int = 200, headers=None, closer=None) -> Response:
    return Response(
        status_code=status_code,
        reason_phrase="OK",
        headers=httpx.Headers(headers or {"Content-Type": "text/plain"}),
        url="http://example.com/",
        stream=_chunks(*parts),
        close=closer or _Closer(),
    )


@pytest.mark.asyncio
async def test_read_joins_chunks_and_closes() -> None:
    closer = _Closer()
    response = _response(b"res", b"", b"ponse", closer=closer)

    assert await response.read() == b"response"
    assert response.content == b"response"
    assert response.is_stream_consumed
    assert response.is_closed
    assert closer.calls == 1


@pytest.mark.asyncio
async def test_read_twice_returns_buffered_body() -> None:
    response = _response(b"abc")

    assert await response.read() == b"abc"
    assert await response.read() == b"abc"


@pytest.mark.asyncio
async def test_async_for_skips_empty_chunks() -> None:
    response = _response(b"a", b"", b"b")

    chunks = [chunk async for chunk in response]

    assert chunks == [b"a", b"b"]


@pytest.mark.asyncio
async def test_stream_cannot_be_iterated_twice() -> None:
    response = _response(b"a")
    _ = [chunk async for chunk in response.aiter_bytes()]
    response._content = None  # simulate a caller that streamed instead of read()

    with pytest.raises(RuntimeError, match="already been consumed"):
        _ = [chunk async for chunk in response.aiter_bytes()]


@pytest.mark.asyncio
async def test_content_before_read_raises() -> None:
    response = _response(b"a")

    with pytest.raises(RuntimeError, match="has not been read"):
        _ = response.content


@pytest.mark.asyncio
async def test_status_and_headers_stable_across_consumption() -> None:
    response = _response(b"body", headers={"X-Thing": "1"})
    before = (response.status_code, dict(response.headers))

    await response.read()

    assert (response.status_code, dict(response.headers)) == before


@pytest.mark.asyncio
async def test_context_manager_closes_once() -> None:
    closer = _Closer()

    async with _response(b"a", closer=closer) as response:
        pass
    await response.aclose()

    assert closer.calls == 1
    assert response.is_closed


@pytest.mark.asyncio
async def test_break_inside_context_manager_releases_stream() -> None:
    closer = _Closer()
    finalized: list[bool] = []

    async def body() -> AsyncIterator[bytes]:
        try:
            for part in (b"a", b"b", b"c"):
                yield part
        finally:
            finalized.append(True)

    response = Response(
        status_code=200,
        headers=httpx.Headers(),
        url="http://example.com/",
        stream=body(),
        close=closer,
    )

    async with response:
        async for chunk in response:
            assert chunk == b"a"
            break

    assert finalized == [True]
    assert closer.calls == 1
    assert response.is_closed


@pytest.mark.asyncio
async def test_iterating_closed_response_raises() -> None:
    response = _response(b"a")
    await response.aclose()

    with pytest.raises(RuntimeError, match="closed"):
        _ = [chunk async for chunk in response]


def test_is_redirect_requires_location() -> None:
    assert _response(status_code=302, headers={"Location": "/next"}).is_redirect
    assert not _response(status_code=302, headers={}).is_redirect
    assert not _response(status_code=200, headers={"Location": "/next"}).is_redirect


def test_repr() -> None:
    assert repr(_response()) == "<Response [200 OK]>"
