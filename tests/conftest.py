# tests/conftest.py
"""Shared test fixtures and helpers.

Transport fixtures:
- make_selector: builds a TransportSelector whose http and https transports
  are httpx.MockTransport instances sharing one handler. Every request is
  appended to `hits` together with the scheme of the transport that
  served it, so tests can assert which transport each hop used.

Mock responses must be built with stream=httpx.ByteStream(...), not
content=..., because httpx.Response(content=...) reads (and decodes) the
body on construction, which would leave nothing for aiter_raw().

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from simpleget.core.transport import TransportSelector

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


@dataclass(frozen=True)
class Hit:
    """One request as seen by a mock transport."""

    scheme: str
    request: httpx.Request


@pytest.fixture
def hits() -> list[Hit]:
    return []


@pytest.fixture
def make_selector(hits: list[Hit]) -> Callable[[Handler], TransportSelector]:
    """Factory for a selector backed by recording mock transports."""

    def _make(handler: Handler) -> TransportSelector:
        def factory(scheme: str) -> Callable[[], httpx.AsyncBaseTransport]:
            def transport() -> httpx.AsyncBaseTransport:
                def handle(request: httpx.Request) -> httpx.Response | Awaitable[httpx.Response]:
                    hits.append(Hit(scheme=scheme, request=request))
                    return handler(request)

                return httpx.MockTransport(handle)

            return transport

        return TransportSelector({"http": factory("http"), "https": factory("https")})

    return _make


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any configure_logging() a test performed."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
