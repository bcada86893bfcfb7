# src/simpleget/contracts/request.py
"""Request-side contracts: caller options, the canonical descriptor, redirect states."""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

# bytes/str are sent as-is; async iterables are streamed once and cannot be
# replayed across a redirect.
RequestBody = bytes | str | AsyncIterable[bytes] | None

_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")
# Printable ASCII plus tab; httpx encodes header values as ASCII.
_FIELD_VALUE_CHARS = frozenset(chr(c) for c in range(0x20, 0x7F)) | {"\t"}


class RedirectState(StrEnum):
    """States of the redirect-following state machine."""

    SENDING = "sending"
    EVALUATING = "evaluating"
    DONE = "done"
    ERROR = "error"


class RequestOptions(BaseModel):
    """Structured request options as supplied by a caller.

    Both snake_case and camelCase spellings are accepted for the redirect
    fields (max_redirects/maxRedirects, follow_redirects/followRedirects).
    Unset max_redirects and timeout fall back to ClientSettings.

    Example:
        RequestOptions(
            url="https://example.com/upload",
            method="PUT",
            headers={"X-Request-Id": "abc"},
            body=b"payload",
            timeout=5.0,
        )
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    timeout: float | None = Field(default=None, gt=0)
    max_redirects: int | None = Field(default=None, ge=0, alias="maxRedirects")
    follow_redirects: bool = Field(default=True, alias="followRedirects")

    @field_validator("url", mode="before")
    @classmethod
    def _coerce_url(cls, v: Any) -> Any:
        if isinstance(v, httpx.URL):
            return str(v)
        return v

    @field_validator("url")
    @classmethod
    def _require_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("url must not be empty")
        return v.strip()

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, v: str) -> str:
        method = v.strip().upper()
        if not method or not set(method) <= _TOKEN_CHARS:
            raise ValueError(f"invalid HTTP method: {v!r}")
        return method

    @field_validator("headers")
    @classmethod
    def _check_headers(cls, v: dict[str, str]) -> dict[str, str]:
        checked: dict[str, str] = {}
        for name, value in v.items():
            if not name or not set(name) <= _TOKEN_CHARS:
                raise ValueError(f"invalid header name: {name!r}")
            if not set(value) <= _FIELD_VALUE_CHARS:
                raise ValueError(f"invalid value for header {name!r}: {value!r}")
            # Surrounding whitespace is not part of a field value
            checked[name] = value.strip(" \t")
        return checked

    @field_validator("body")
    @classmethod
    def _check_body(cls, v: Any) -> Any:
        if v is None or isinstance(v, (bytes, str)):
            return v
        if isinstance(v, (bytearray, memoryview)):
            return bytes(v)
        if isinstance(v, AsyncIterable):
            return v
        # Sync iterables are drained up front so the body can be replayed on a redirect.
        if isinstance(v, Iterable) and not isinstance(v, Mapping):
            return b"".join(bytes(chunk) for chunk in v)
        raise ValueError(f"body must be bytes, str or an iterable of bytes, got {type(v).__name__}")


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """Canonical request, as dispatched for one attempt.

    The URL scheme is validated by the transport selector on every attempt,
    not here: a descriptor may carry any absolute URL, and only http/https
    ones are ever sent.
    """

    method: str
    url: httpx.URL
    headers: httpx.Headers
    body: RequestBody
    timeout: float | None
    max_redirects: int
    follow_redirects: bool = True

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def replayable(self) -> bool:
        """Whether the body can be sent again on another hop."""
        return self.body is None or isinstance(self.body, (bytes, str))

    def with_url(self, url: httpx.URL, *, headers: httpx.Headers | None = None) -> RequestDescriptor:
        """Copy with the URL replaced (and optionally the headers)."""
        return replace(self, url=url, headers=self.headers if headers is None else headers)
