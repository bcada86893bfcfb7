# src/simpleget/contracts/errors.py
"""Error taxonomy for the request pipeline.

Errors fall into two phases:

1. Dispatch errors (InvalidInputError, UnsupportedSchemeError, TransportError,
   TooManyRedirectsError) are raised before a response is delivered and reach
   the caller exactly once through the completion channel.
2. Body errors (DecodeError, and TransportError raised mid-body) are raised
   from the response byte stream, after the completion has already fired
   with a success result.
"""

from __future__ import annotations

from typing import Literal

TransportErrorKind = Literal["connect", "timeout", "network"]


class SimpleGetError(Exception):
    """Base class for every error raised by simpleget."""


class InvalidInputError(SimpleGetError, ValueError):
    """Request input could not be turned into a request descriptor.

    Raised for a missing or unparseable URL, options that fail validation,
    and a redirect Location that cannot be resolved to a URL. No network
    activity happens for the request that raised it.
    """


class UnsupportedSchemeError(SimpleGetError):
    """URL scheme is neither http nor https."""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        super().__init__(f"Unsupported scheme: {scheme!r} (expected 'http' or 'https')")


class TransportError(SimpleGetError):
    """Connection, DNS or timeout failure while talking to the origin.

    Attributes:
        kind: "connect" (refused/DNS), "timeout", or "network" (anything else
            the transport reported, e.g. a protocol violation or dropped read)
        url: URL of the attempt that failed
    """

    def __init__(self, message: str, *, kind: TransportErrorKind, url: str) -> None:
        self.kind = kind
        self.url = url
        super().__init__(message)


class TooManyRedirectsError(SimpleGetError):
    """Redirect chain exceeded the configured hop limit.

    Attributes:
        max_redirects: The limit that was reached
        redirects: URLs visited, in order, before the chain was abandoned
    """

    def __init__(self, max_redirects: int, redirects: tuple[str, ...]) -> None:
        self.max_redirects = max_redirects
        self.redirects = redirects
        super().__init__(f"Exceeded {max_redirects} redirects")


class DecodeError(SimpleGetError):
    """Compressed response body is malformed or truncated."""

    def __init__(self, message: str, *, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(message)
