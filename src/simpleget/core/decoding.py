# src/simpleget/core/decoding.py
"""Decompression proxy for terminal responses.

Wraps the raw (still encoded) httpx response stream in a Response whose
byte stream yields decoded bytes. Status and headers are copied onto the
Response up front, so they read the same whether or not decoding happens
and whether or not the body has been consumed.

Supported content codings: gzip (and its x-gzip alias), deflate (zlib
wrapped or raw), and identity (ignored). A Content-Encoding that lists any
other coding is passed through undecoded.

Decoding failures surface from the body stream as DecodeError. By then the
caller already holds a successful Response.
"""

from __future__ import annotations

import zlib
from collections.abc import AsyncIterator

import httpx
import structlog

from simpleget.contracts.errors import DecodeError
from simpleget.contracts.response import Response
from simpleget.core.redirects import Exchange
from simpleget.core.transport import transport_error_from

logger = structlog.get_logger(__name__)


class ContentDecoder:
    def decompress(self, data: bytes) -> bytes:
        raise NotImplementedError()

    def flush(self) -> bytes:
        raise NotImplementedError()


class IdentityDecoder(ContentDecoder):
    def decompress(self, data: bytes) -> bytes:
        return data

    def flush(self) -> bytes:
        return b""


class DeflateDecoder(ContentDecoder):
    """Deflate with or without the zlib header.

    RFC 9110 says deflate is zlib-wrapped, but some servers send raw
    deflate. The first chunk decides: if the zlib header check fails,
    decoding restarts as raw deflate.
    """

    def __init__(self) -> None:
        self._first_try = True
        self._data = b""
        self._seen_data = False
        self._obj = zlib.decompressobj()

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return data
        self._seen_data = True

        if not self._first_try:
            return self._obj.decompress(data)

        self._data += data
        try:
            decompressed = self._obj.decompress(data)
            if decompressed:
                self._first_try = False
                self._data = b""
            return decompressed
        except zlib.error:
            self._first_try = False
            self._obj = zlib.decompressobj(-zlib.MAX_WBITS)
            try:
                return self.decompress(self._data)
            finally:
                self._data = b""

    def flush(self) -> bytes:
        tail = self._obj.flush()
        if self._seen_data and not self._obj.eof:
            raise zlib.error("incomplete deflate stream")
        return tail


class GzipDecoder(ContentDecoder):
    """Gzip, including multi-member streams.

    Trailing garbage after a complete first member is tolerated, as other
    gzip clients do.
    """

    def __init__(self) -> None:
        self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        self._seen_data = False
        self._other_members = False
        self._swallow = False

    def decompress(self, data: bytes) -> bytes:
        ret = bytearray()
        if self._swallow or not data:
            return bytes(ret)
        self._seen_data = True
        while True:
            try:
                ret += self._obj.decompress(data)
            except zlib.error:
                self._swallow = True
                if self._other_members:
                    return bytes(ret)
                raise
            data = self._obj.unused_data
            if not data:
                return bytes(ret)
            self._other_members = True
            self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)

    def flush(self) -> bytes:
        tail = self._obj.flush()
        # Only the first member has to be complete
        if self._seen_data and not self._other_members and not self._obj.eof:
            raise zlib.error("incomplete gzip stream")
        return tail


class MultiDecoder(ContentDecoder):
    """Stacked codings, listed in the order they were applied.

    Decoding undoes them last-applied first.
    """

    def __init__(self, codings: tuple[str, ...]) -> None:
        self._decoders = [_decoder_for(coding) for coding in reversed(codings)]

    def decompress(self, data: bytes) -> bytes:
        for decoder in self._decoders:
            data = decoder.decompress(data)
        return data

    def flush(self) -> bytes:
        data = b""
        for decoder in self._decoders:
            data = (decoder.decompress(data) if data else b"") + decoder.flush()
        return data


_DECODERS: dict[str, type[ContentDecoder]] = {
    "gzip": GzipDecoder,
    "x-gzip": GzipDecoder,
    "deflate": DeflateDecoder,
}


def _decoder_for(coding: str) -> ContentDecoder:
    return _DECODERS[coding]()


def parse_content_encoding(value: str | None) -> tuple[str, ...] | None:
    """Codings to undo, in the order they were applied.

    Returns None (pass the body through) when the header is absent, names
    only identity, or names any coding without a decoder.
    """
    if not value:
        return None
    codings = tuple(c.strip().lower() for c in value.split(",") if c.strip() and c.strip().lower() != "identity")
    if not codings or any(c not in _DECODERS for c in codings):
        return None
    return codings


def build_decoder(codings: tuple[str, ...] | None) -> ContentDecoder:
    if not codings:
        return IdentityDecoder()
    if len(codings) == 1:
        return _decoder_for(codings[0])
    return MultiDecoder(codings)


async def _decoded_stream(
    raw: httpx.Response,
    decoder: ContentDecoder,
    encoding: str,
    url: str,
) -> AsyncIterator[bytes]:
    try:
        async for chunk in raw.aiter_raw():
            try:
                decoded = decoder.decompress(chunk)
            except zlib.error as e:
                raise DecodeError(f"Malformed {encoding} body from {url}: {e}", encoding=encoding) from e
            if decoded:
                yield decoded
    except httpx.TransportError as exc:
        raise transport_error_from(exc, url) from exc

    try:
        tail = decoder.flush()
    except zlib.error as e:
        raise DecodeError(f"Malformed {encoding} body from {url}: {e}", encoding=encoding) from e
    if tail:
        yield tail


def decode_response(exchange: Exchange) -> Response:
    """Wrap the terminal exchange in a caller-facing Response.

    The returned Response owns the exchange: exhausting its stream or
    calling aclose() closes the raw response and its client.
    """
    raw = exchange.response
    header_value = raw.headers.get("content-encoding")
    codings = parse_content_encoding(header_value)
    applied = ", ".join(codings) if codings else None

    if codings is None and header_value and header_value.strip().lower() != "identity":
        logger.debug("content_encoding_passthrough", url=str(exchange.url), content_encoding=header_value)

    return Response(
        status_code=raw.status_code,
        reason_phrase=raw.reason_phrase,
        http_version=raw.http_version,
        headers=httpx.Headers(raw.headers),
        url=str(exchange.url),
        redirects=exchange.redirects,
        content_encoding=applied,
        stream=_decoded_stream(raw, build_decoder(codings), applied or "identity", str(exchange.url)),
        close=exchange.aclose,
    )
