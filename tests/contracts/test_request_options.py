"""Tests for RequestOptions validation and RequestDescriptor helpers."""

import httpx
import pytest
from pydantic import ValidationError

from simpleget.contracts import RequestDescriptor, RequestOptions


class TestRequestOptions:
    def test_defaults(self) -> None:
        options = RequestOptions(url="http://example.com/")

        assert options.method == "GET"
        assert options.headers == {}
        assert options.body is None
        assert options.timeout is None
        assert options.max_redirects is None
        assert options.follow_redirects is True

    def test_camel_case_aliases_accepted(self) -> None:
        options = RequestOptions.model_validate(
            {"url": "http://example.com/", "maxRedirects": 3, "followRedirects": False}
        )

        assert options.max_redirects == 3
        assert options.follow_redirects is False

    def test_snake_case_names_accepted(self) -> None:
        options = RequestOptions.model_validate({"url": "http://example.com/", "max_redirects": 0})

        assert options.max_redirects == 0

    def test_method_is_upper_cased(self) -> None:
        assert RequestOptions(url="http://example.com/", method=" post ").method == "POST"

    def test_method_with_space_rejected(self) -> None:
        with pytest.raises(ValidationError, match="invalid HTTP method"):
            RequestOptions(url="http://example.com/", method="GE T")

    @pytest.mark.parametrize("name", ["X Name", "X-Name:", "", "X-Caf\u00e9", "X\nInjected"])
    def test_invalid_header_name_rejected(self, name: str) -> None:
        with pytest.raises(ValidationError, match="invalid header name"):
            RequestOptions(url="http://example.com/", headers={name: "value"})

    @pytest.mark.parametrize("value", ["caf\u00e9", "a\r\nX-Injected: 1", "line\nbreak", "nul\x00"])
    def test_invalid_header_value_rejected(self, value: str) -> None:
        with pytest.raises(ValidationError, match="invalid value for header"):
            RequestOptions(url="http://example.com/", headers={"X-Name": value})

    def test_header_value_with_tab_and_punctuation_accepted(self) -> None:
        options = RequestOptions(url="http://example.com/", headers={"X-Name": "a\tb; q=0.5, \"quoted\""})

        assert options.headers["X-Name"] == "a\tb; q=0.5, \"quoted\""

    def test_header_value_surrounding_whitespace_trimmed(self) -> None:
        options = RequestOptions(url="http://example.com/", headers={"X-Name": " \tvalue \t"})

        assert options.headers == {"X-Name": "value"}

    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="url must not be empty"):
            RequestOptions(url="   ")

    def test_httpx_url_coerced_to_str(self) -> None:
        options = RequestOptions(url=httpx.URL("https://example.com/a?b=1"))

        assert options.url == "https://example.com/a?b=1"

    def test_negative_redirect_limit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestOptions(url="http://example.com/", max_redirects=-1)

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestOptions(url="http://example.com/", timeout=0)

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestOptions.model_validate({"url": "http://example.com/", "json": {"a": 1}})

    def test_sync_iterable_body_is_drained(self) -> None:
        options = RequestOptions(url="http://example.com/", body=iter([b"ab", b"cd"]))

        assert options.body == b"abcd"

    def test_bytearray_body_becomes_bytes(self) -> None:
        options = RequestOptions(url="http://example.com/", body=bytearray(b"xyz"))

        assert options.body == b"xyz"

    def test_async_iterable_body_kept(self) -> None:
        async def chunks():
            yield b"a"

        stream = chunks()
        options = RequestOptions(url="http://example.com/", body=stream)

        assert options.body is stream

    def test_dict_body_rejected(self) -> None:
        with pytest.raises(ValidationError, match="body must be bytes"):
            RequestOptions(url="http://example.com/", body={"a": 1})

    def test_options_are_frozen(self) -> None:
        options = RequestOptions(url="http://example.com/")

        with pytest.raises(ValidationError):
            options.method = "POST"  # type: ignore[misc]


class TestRequestDescriptor:
    def _descriptor(self, body=None) -> RequestDescriptor:
        return RequestDescriptor(
            method="GET",
            url=httpx.URL("http://example.com/a"),
            headers=httpx.Headers({"X-Custom": "1"}),
            body=body,
            timeout=None,
            max_redirects=10,
        )

    def test_with_url_keeps_method_and_headers(self) -> None:
        descriptor = self._descriptor()

        moved = descriptor.with_url(httpx.URL("https://other.example/b"))

        assert moved.url == httpx.URL("https://other.example/b")
        assert moved.scheme == "https"
        assert moved.method == "GET"
        assert moved.headers is descriptor.headers
        assert descriptor.url == httpx.URL("http://example.com/a")

    def test_bytes_body_is_replayable(self) -> None:
        assert self._descriptor(b"data").replayable
        assert self._descriptor(None).replayable

    def test_async_body_is_not_replayable(self) -> None:
        async def chunks():
            yield b"a"

        assert not self._descriptor(chunks()).replayable
