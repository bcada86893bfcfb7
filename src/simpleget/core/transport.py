# src/simpleget/core/transport.py
"""Transport selection per URL scheme.

Only http and https are dispatched; every other scheme (file://, ftp://,
scheme-relative //host/path, ...) is rejected before any network activity.
The selector is consulted on every attempt, so a redirect that switches
between https and http gets the transport for its new scheme.

Each call to select() builds a fresh transport. Attempts never share a
connection pool.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

import httpx

from simpleget.contracts.errors import TransportError, UnsupportedSchemeError
from simpleget.core.config import ClientSettings

ALLOWED_SCHEMES = frozenset({"http", "https"})

TransportFactory = Callable[[], httpx.AsyncBaseTransport]


class TransportSelector:
    """Maps http/https to transport factories.

    Example:
        selector = TransportSelector.default(settings)
        transport = selector.select("https")

        # Tests swap in mock transports per scheme
        selector = TransportSelector(
            {
                "http": lambda: httpx.MockTransport(plain_handler),
                "https": lambda: httpx.MockTransport(tls_handler),
            }
        )
    """

    def __init__(self, factories: Mapping[str, TransportFactory]) -> None:
        unknown = {scheme.lower() for scheme in factories} - ALLOWED_SCHEMES
        if unknown:
            raise ValueError(f"Transports can only be registered for http/https, got: {sorted(unknown)}")
        self._factories = {scheme.lower(): factory for scheme, factory in factories.items()}

    @classmethod
    def default(cls, settings: ClientSettings | None = None) -> TransportSelector:
        """Selector backed by httpx's own HTTP/1.1 transports."""
        verify = settings.verify_tls if settings is not None else True
        return cls(
            {
                "http": httpx.AsyncHTTPTransport,
                "https": lambda: httpx.AsyncHTTPTransport(verify=verify),
            }
        )

    @property
    def schemes(self) -> frozenset[str]:
        return frozenset(self._factories)

    def select(self, scheme: str) -> httpx.AsyncBaseTransport:
        """Return a new transport for the scheme.

        Raises:
            UnsupportedSchemeError: For anything but a registered http/https scheme
        """
        normalized = scheme.lower()
        if normalized not in ALLOWED_SCHEMES or normalized not in self._factories:
            raise UnsupportedSchemeError(scheme)
        return self._factories[normalized]()


def transport_error_from(exc: BaseException, url: str) -> TransportError:
    """Translate an httpx/asyncio failure into a TransportError.

    Timeouts (httpx's own and the per-attempt asyncio deadline) map to
    kind="timeout"; refused connections and DNS failures, which httpx
    reports as ConnectError, map to kind="connect"; anything else the
    transport raised maps to kind="network".
    """
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return TransportError(f"Request timed out: {url}", kind="timeout", url=url)
    if isinstance(exc, httpx.ConnectError):
        return TransportError(f"Connection failed: {url}: {exc}", kind="connect", url=url)
    return TransportError(f"Transport failure: {url}: {type(exc).__name__}: {exc}", kind="network", url=url)
