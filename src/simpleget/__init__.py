"""
simpleget: a minimal HTTP(S) request core.

Issues one logical request, follows redirect chains across http and https,
and hands back a response whose body is decoded from gzip/deflate.

Usage:
    import simpleget

    async def on_done(err, res):
        if err is not None:
            raise err
        async with res:
            body = await res.read()

    await simpleget.get("https://example.com/", on_done)
"""

__version__ = "0.4.0"

from simpleget.client import (  # noqa: E402
    Completion,
    concat,
    delete,
    get,
    head,
    patch,
    post,
    put,
    request,
)
from simpleget.contracts import (  # noqa: E402
    DecodeError,
    InvalidInputError,
    RequestOptions,
    Response,
    SimpleGetError,
    TooManyRedirectsError,
    TransportError,
    UnsupportedSchemeError,
)

__all__ = [
    "Completion",
    "DecodeError",
    "InvalidInputError",
    "RequestOptions",
    "Response",
    "SimpleGetError",
    "TooManyRedirectsError",
    "TransportError",
    "UnsupportedSchemeError",
    "__version__",
    "concat",
    "delete",
    "get",
    "head",
    "patch",
    "post",
    "put",
    "request",
]
