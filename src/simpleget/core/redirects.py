# src/simpleget/core/redirects.py
"""Redirect-following state machine.

States: SENDING -> EVALUATING -> (SENDING again on a followed hop) -> DONE,
or ERROR from any state. A response is a redirect when its status is 3xx
AND it carries a Location header; 3xx without Location is terminal and is
returned as-is.

Every attempt re-selects the transport for the current URL's scheme, so
https -> http and http -> https hops each use the right transport. Each
attempt uses its own short-lived httpx.AsyncClient; redirect responses are
closed without reading their bodies.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
import structlog

from simpleget.contracts.errors import InvalidInputError, SimpleGetError, TooManyRedirectsError
from simpleget.contracts.request import RedirectState, RequestDescriptor
from simpleget.core.logging import request_context, set_hop
from simpleget.core.transport import ALLOWED_SCHEMES, TransportSelector, transport_error_from

logger = structlog.get_logger(__name__)

# Dropped on cross-origin hops only when strip_sensitive_headers is enabled.
SENSITIVE_HEADERS = frozenset({b"authorization", b"proxy-authorization", b"cookie"})


def redirect_location(response: httpx.Response) -> str | None:
    """Location to follow, or None when the response is terminal."""
    if 300 <= response.status_code < 400:
        return response.headers.get("location") or None
    return None


def same_origin(a: httpx.URL, b: httpx.URL) -> bool:
    return (a.scheme, a.host, a.port) == (b.scheme, b.host, b.port)


@dataclass(slots=True)
class Exchange:
    """One dispatched attempt: the client that sent it and its unread response."""

    client: httpx.AsyncClient
    response: httpx.Response
    url: httpx.URL
    redirects: tuple[str, ...]

    async def aclose(self) -> None:
        try:
            await self.response.aclose()
        finally:
            await self.client.aclose()


class RedirectController:
    """Drives one request through its redirect chain.

    Example:
        controller = RedirectController(descriptor, TransportSelector.default())
        exchange = await controller.run()
        # exchange.response is the terminal response, body unread
    """

    def __init__(
        self,
        descriptor: RequestDescriptor,
        selector: TransportSelector,
        *,
        strip_sensitive_headers: bool = False,
    ) -> None:
        self.descriptor = descriptor
        self.state = RedirectState.SENDING
        self.hops = 0
        self._selector = selector
        self._strip_sensitive_headers = strip_sensitive_headers
        self._visited: list[str] = []

    @property
    def visited(self) -> tuple[str, ...]:
        """URLs dispatched so far, in order."""
        return tuple(self._visited)

    async def run(self) -> Exchange:
        """Follow the chain to its terminal response.

        Returns:
            Exchange holding the terminal response with its body unread

        Raises:
            UnsupportedSchemeError: If any hop's URL is not http/https
            TransportError: If any attempt fails to connect or times out
            TooManyRedirectsError: If a redirect arrives after max_redirects hops
            InvalidInputError: If a Location can't be resolved, or a streamed
                body would have to be replayed
        """
        with request_context(self.descriptor.method, str(self.descriptor.url)):
            return await self._run()

    async def _run(self) -> Exchange:
        try:
            while True:
                exchange = await self._send()
                self.state = RedirectState.EVALUATING

                location = redirect_location(exchange.response)
                if location is None or not self.descriptor.follow_redirects:
                    self.state = RedirectState.DONE
                    return exchange

                # Redirect bodies are never read
                await exchange.aclose()

                if self.hops >= self.descriptor.max_redirects:
                    logger.warning(
                        "redirect_limit_exceeded",
                        url=str(self.descriptor.url),
                        max_redirects=self.descriptor.max_redirects,
                    )
                    raise TooManyRedirectsError(self.descriptor.max_redirects, self.visited)

                self._follow(exchange.response.status_code, location)
                self.state = RedirectState.SENDING
        except Exception:
            self.state = RedirectState.ERROR
            raise

    async def _send(self) -> Exchange:
        descriptor = self.descriptor
        url = str(descriptor.url)
        transport = self._selector.select(descriptor.scheme)

        client = httpx.AsyncClient(
            transport=transport,
            follow_redirects=False,
            timeout=httpx.Timeout(descriptor.timeout),
        )
        request = client.build_request(
            descriptor.method,
            descriptor.url,
            headers=descriptor.headers,
            content=descriptor.body,
        )

        logger.debug("request_dispatched", url=url)

        try:
            async with asyncio.timeout(descriptor.timeout):
                response = await client.send(request, stream=True)
        except (httpx.TransportError, TimeoutError) as exc:
            await client.aclose()
            logger.warning(
                "transport_failed",
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise transport_error_from(exc, url) from exc
        except BaseException:
            await client.aclose()
            raise

        redirects = self.visited
        self._visited.append(url)
        return Exchange(client=client, response=response, url=descriptor.url, redirects=redirects)

    def _follow(self, status_code: int, location: str) -> None:
        current = self.descriptor.url
        try:
            target = current.join(location)
        except httpx.InvalidURL as e:
            raise InvalidInputError(f"Invalid redirect location {location!r} from {current}: {e}") from e
        if target.scheme in ALLOWED_SCHEMES and not target.host:
            raise InvalidInputError(f"Redirect location has no host: {location!r}")

        if not self.descriptor.replayable:
            raise InvalidInputError(f"Streamed request body cannot be replayed for redirect to {target}")

        headers = self.descriptor.headers
        if self._strip_sensitive_headers and not same_origin(current, target):
            headers = httpx.Headers([(k, v) for k, v in headers.raw if k.lower() not in SENSITIVE_HEADERS])

        self.hops += 1
        set_hop(self.hops)
        logger.debug(
            "redirect_followed",
            status_code=status_code,
            redirect_from=str(current),
            url=str(target),
        )
        self.descriptor = self.descriptor.with_url(target, headers=headers)


async def follow_redirects(
    descriptor: RequestDescriptor,
    selector: TransportSelector,
    *,
    strip_sensitive_headers: bool = False,
) -> Exchange:
    """Run a RedirectController to completion."""
    controller = RedirectController(descriptor, selector, strip_sensitive_headers=strip_sensitive_headers)
    try:
        return await controller.run()
    except SimpleGetError as exc:
        logger.debug("request_failed", url=str(descriptor.url), hops=controller.hops, error_type=type(exc).__name__)
        raise
