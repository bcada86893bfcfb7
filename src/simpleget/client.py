# src/simpleget/client.py
"""Public call surface.

request() is the coroutine API: it returns a Response or raises a
SimpleGetError. get() and the method shortcuts wrap it in a completion
callback that receives (error, response) exactly once.

Example:
    async def on_done(err, res):
        if err is not None:
            log.error("fetch failed", error=str(err))
            return
        async with res:
            print(res.status_code, await res.read())

    await simpleget.get({"url": url, "headers": {"X-Trace": "1"}}, on_done)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

from simpleget.contracts.errors import SimpleGetError
from simpleget.contracts.response import Response
from simpleget.core.config import ClientSettings
from simpleget.core.decoding import decode_response
from simpleget.core.descriptor import RequestTarget, build_descriptor, with_method
from simpleget.core.logging import get_logger, request_context
from simpleget.core.redirects import follow_redirects
from simpleget.core.transport import TransportSelector

logger = get_logger(__name__)

# Callbacks may be plain functions or coroutine functions.
CompletionCallback = Callable[[SimpleGetError | None, Response | None], Awaitable[None] | None]


class Completion:
    """Single-shot result channel.

    Fires its callback exactly once, with either an error or a response,
    never both. A second resolve()/reject() is a bug in the caller of this
    class and raises RuntimeError.
    """

    def __init__(self, callback: CompletionCallback) -> None:
        self._callback = callback
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    async def resolve(self, response: Response) -> None:
        await self._fire(None, response)

    async def reject(self, error: SimpleGetError) -> None:
        await self._fire(error, None)

    async def _fire(self, error: SimpleGetError | None, response: Response | None) -> None:
        if self._fired:
            raise RuntimeError("Completion callback already fired")
        self._fired = True
        result = self._callback(error, response)
        if inspect.isawaitable(result):
            await result


async def request(
    target: RequestTarget,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> Response:
    """Issue a request, follow its redirects, and return the decoded response.

    Args:
        target: URL string, httpx.URL, option mapping, or RequestOptions
        settings: Client defaults (redirect limit, timeout, TLS verification)
        selector: Transport per scheme (default: httpx transports)

    Returns:
        Response with status/headers available immediately and the body
        unread. The caller owns it and must consume or aclose() it.

    Raises:
        InvalidInputError: Missing/malformed URL or options
        UnsupportedSchemeError: A hop's scheme is not http/https
        TransportError: Connection failure, DNS failure, or timeout
        TooManyRedirectsError: The chain exceeded max_redirects
    """
    settings = settings if settings is not None else ClientSettings()
    descriptor = build_descriptor(target, settings=settings)
    selector = selector if selector is not None else TransportSelector.default(settings)

    with request_context(descriptor.method, str(descriptor.url)):
        exchange = await follow_redirects(
            descriptor,
            selector,
            strip_sensitive_headers=settings.strip_sensitive_headers_cross_origin,
        )
        response = decode_response(exchange)

        logger.debug(
            "request_completed",
            url=response.url,
            status_code=response.status_code,
            redirect_count=len(response.redirects),
            content_encoding=response.content_encoding,
        )
    return response


async def get(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    """Issue a request and deliver the outcome to callback(error, response).

    The callback fires exactly once. Errors raised while the caller later
    reads the body (DecodeError, mid-body TransportError) come from the
    response stream, not from here.
    """
    await _complete(target, callback, settings=settings, selector=selector)


async def _complete(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None,
    selector: TransportSelector | None,
    method: str | None = None,
) -> None:
    completion = Completion(callback)
    try:
        if method is not None:
            target = with_method(target, method)
        response = await request(target, settings=settings, selector=selector)
    except SimpleGetError as exc:
        await completion.reject(exc)
        return
    await completion.resolve(response)


async def concat(
    target: RequestTarget,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> tuple[Response, bytes]:
    """Issue a request and read the whole decoded body.

    Raises:
        Everything request() raises, plus DecodeError for a malformed
        compressed body and TransportError for a failure mid-body.
    """
    response = await request(target, settings=settings, selector=selector)
    async with response:
        body = await response.read()
    return response, body


async def head(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    await _complete(target, callback, settings=settings, selector=selector, method="HEAD")


async def post(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    await _complete(target, callback, settings=settings, selector=selector, method="POST")


async def put(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    await _complete(target, callback, settings=settings, selector=selector, method="PUT")


async def patch(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    await _complete(target, callback, settings=settings, selector=selector, method="PATCH")


async def delete(
    target: RequestTarget,
    callback: CompletionCallback,
    *,
    settings: ClientSettings | None = None,
    selector: TransportSelector | None = None,
) -> None:
    await _complete(target, callback, settings=settings, selector=selector, method="DELETE")
