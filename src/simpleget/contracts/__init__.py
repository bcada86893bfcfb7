"""Shared contracts for the request pipeline.

Types that cross component boundaries (options, descriptors, the response
handle and the error taxonomy) live here. This package has no dependency on
simpleget.core.

Import patterns:
    from simpleget.contracts import RequestOptions, Response, TransportError
"""

from simpleget.contracts.errors import (
    DecodeError,
    InvalidInputError,
    SimpleGetError,
    TooManyRedirectsError,
    TransportError,
    TransportErrorKind,
    UnsupportedSchemeError,
)
from simpleget.contracts.request import RedirectState, RequestBody, RequestDescriptor, RequestOptions
from simpleget.contracts.response import Response

__all__ = [
    "DecodeError",
    "InvalidInputError",
    "RedirectState",
    "RequestBody",
    "RequestDescriptor",
    "RequestOptions",
    "Response",
    "SimpleGetError",
    "TooManyRedirectsError",
    "TransportError",
    "TransportErrorKind",
    "UnsupportedSchemeError",
]
