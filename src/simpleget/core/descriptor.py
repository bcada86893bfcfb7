# src/simpleget/core/descriptor.py
"""Request descriptor builder.

Normalizes whatever the caller passed (a URL string, an httpx.URL, a plain
mapping of options, or RequestOptions) into a RequestDescriptor. Pure: no
DNS lookups, no sockets.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from simpleget.contracts.errors import InvalidInputError
from simpleget.contracts.request import RequestDescriptor, RequestOptions
from simpleget.core.config import ClientSettings
from simpleget.core.transport import ALLOWED_SCHEMES

# Only codings the decompression proxy can undo are advertised.
ACCEPT_ENCODING = "gzip, deflate"

RequestTarget = str | httpx.URL | RequestOptions | Mapping[str, Any]


def parse_url(raw: str) -> httpx.URL:
    """Parse an absolute URL.

    A scheme-relative URL (//host/path) parses fine here and is rejected
    later by the transport selector as an unsupported scheme.

    Raises:
        InvalidInputError: If the URL can't be parsed, is a bare relative
            reference, or is an http(s) URL without a host
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidInputError(f"Invalid URL {raw!r}: {e}") from e

    if not url.scheme and not url.host:
        raise InvalidInputError(f"Not an absolute URL: {raw!r}")
    if url.scheme in ALLOWED_SCHEMES and not url.host:
        raise InvalidInputError(f"URL has no host: {raw!r}")
    return url


def coerce_options(target: RequestTarget) -> RequestOptions:
    """Turn any accepted caller input into validated RequestOptions."""
    if isinstance(target, RequestOptions):
        return target
    if isinstance(target, (str, httpx.URL)):
        data: dict[str, Any] = {"url": str(target)}
    elif isinstance(target, Mapping):
        data = dict(target)
        if data.get("url") is None:
            raise InvalidInputError("Request options have no url")
    else:
        raise InvalidInputError(f"Expected a URL string or request options, got {type(target).__name__}")

    try:
        return RequestOptions.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid request options: {e}") from e


def with_method(target: RequestTarget, method: str) -> RequestOptions:
    """Copy of the caller's input with the method forced (for post/put/... shortcuts)."""
    return coerce_options(target).model_copy(update={"method": method.upper()})


def build_descriptor(target: RequestTarget, *, settings: ClientSettings | None = None) -> RequestDescriptor:
    """Build the canonical descriptor for the first attempt.

    Args:
        target: URL string/httpx.URL, option mapping, or RequestOptions
        settings: Defaults for timeout, redirect limit and encoding advertisement

    Returns:
        RequestDescriptor with method, parsed URL, headers (caller entries
        verbatim), body, timeout and redirect limit resolved

    Raises:
        InvalidInputError: If no URL is present, it can't be parsed, or the
            options fail validation
    """
    settings = settings if settings is not None else ClientSettings()
    options = coerce_options(target)
    url = parse_url(options.url)

    headers = httpx.Headers(options.headers)
    if "accept-encoding" not in headers:
        headers["Accept-Encoding"] = ACCEPT_ENCODING if settings.advertise_encodings else "identity"

    return RequestDescriptor(
        method=options.method,
        url=url,
        headers=headers,
        body=options.body,
        timeout=options.timeout if options.timeout is not None else settings.timeout,
        max_redirects=options.max_redirects if options.max_redirects is not None else settings.max_redirects,
        follow_redirects=options.follow_redirects,
    )
