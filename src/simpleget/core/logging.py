# src/simpleget/core/logging.py
"""Logging for simpleget.

Library modules log through structlog and never configure anything on
import. While a request runs, request_context() binds its method, the URL
the caller asked for, and the current redirect hop as contextvars, so every
event emitted along the chain (including those from nested helpers) carries
them without passing them around.

configure_logging() is for applications and the CLI: it routes structlog and
stdlib records (httpx, httpcore) through one handler, as JSON or console lines.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

# httpcore logs every connect/TLS/send step at DEBUG.
_TRANSPORT_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "httpcore.connection",
    "httpcore.http11",
    "hpack",
)


@contextmanager
def request_context(method: str, url: str) -> Iterator[None]:
    """Bind one request's identity to every event logged inside the block.

    Example:
        with request_context("GET", "http://example.com/"):
            ...  # events carry request_method, request_url and hop=0
    """
    if "request_url" in structlog.contextvars.get_contextvars():
        # Nested: the outer request keeps its identity and hop count
        yield
        return
    with structlog.contextvars.bound_contextvars(request_method=method, request_url=url, hop=0):
        yield


def set_hop(hop: int) -> None:
    """Update the hop number for the rest of the current request_context()."""
    structlog.contextvars.bind_contextvars(hop=hop)


def _drop_formatter_keys(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route simpleget and transport logs to one handler.

    Args:
        json_output: One JSON object per line instead of console key=value output.
        level: Root level name (DEBUG shows dispatch/redirect/decoding events).
        stream: Defaults to stderr so a fetched body on stdout stays clean.
    """
    log_level = getattr(logging, level.upper())
    shared = _shared_processors()

    final: list[Any] = [_drop_formatter_keys]
    if json_output:
        final += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final.append(structlog.dev.ConsoleRenderer(colors=False))
    formatter = ProcessorFormatter(
        processors=final,
        foreign_pre_chain=shared,
    )

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
