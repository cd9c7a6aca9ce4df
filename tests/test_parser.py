"""
Tests for raw response parsing.
"""

import pytest

from reqstream.parser import (
    RawResponseValues,
    ResponseParser,
    parse_cookie,
    parse_status_code,
    split_header_block,
)


@pytest.fixture
def parser():
    return ResponseParser()


def parse(parser, payload, cookies=None, response_code=200, content_type="text/plain"):
    return parser.parse(
        payload,
        response_code,
        content_type,
        "http://example.com/",
        "test-agent",
        cookies if cookies is not None else {},
    )


class TestSplitHeaderBlock:
    """Test blank line detection."""

    @pytest.mark.parametrize("separator", [b"\r\n\r\n", b"\n\n", b"\r\r"])
    def test_blank_line_markers(self, separator):
        headers, body = split_header_block(b"HTTP/1.1 200 OK" + separator + b"hello")
        assert headers == b"HTTP/1.1 200 OK"
        assert body == b"hello"

    def test_splits_on_first_blank_line_only(self):
        headers, body = split_header_block(b"A\r\n\r\nB\r\n\r\nC")
        assert headers == b"A"
        assert body == b"B\r\n\r\nC"

    def test_no_blank_line(self):
        headers, body = split_header_block(b"HTTP/1.1 204 No Content")
        assert headers == b"HTTP/1.1 204 No Content"
        assert body == b""


class TestStatusAndCookies:
    """Test status line and cookie helpers."""

    def test_parse_status_code(self):
        assert parse_status_code("HTTP/1.1 301 Moved Permanently") == 301
        assert parse_status_code("HTTP/1.0 200 OK") == 200
        assert parse_status_code("HTTP/2 404") == 404

    def test_parse_status_code_invalid(self):
        assert parse_status_code("garbage") is None
        assert parse_status_code("") is None

    def test_parse_cookie_drops_attributes(self):
        assert parse_cookie("session=abc123; Path=/; HttpOnly") == ("session", "abc123")

    def test_parse_cookie_keeps_equals_in_value(self):
        assert parse_cookie("token=a=b; Secure") == ("token", "a=b")

    def test_parse_cookie_without_pair(self):
        assert parse_cookie("HttpOnly") is None


class TestResponseParser:
    """Test the full parsing loop."""

    def test_simple_response(self, parser):
        raw = parse(
            parser,
            b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nX-Id: 7\r\n\r\nhello",
        )
        assert isinstance(raw, RawResponseValues)
        assert raw.response_string == "HTTP/1.1 200 OK"
        assert raw.response_headers == {"Content-Type": "text/plain", "X-Id": "7"}
        assert raw.body == b"hello"
        assert raw.response_code == 200
        assert raw.content_type == "text/plain"
        assert raw.url == "http://example.com/"
        assert raw.user_agent == "test-agent"

    def test_redirect_chain(self, parser):
        payload = (
            b"HTTP/1.1 301 Moved\r\nLocation: /x\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\nhello"
        )
        raw = parse(parser, payload)
        assert raw.response_string == "HTTP/1.1 200 OK"
        assert raw.response_headers == {"Content-Type": "text/plain"}
        assert raw.body == b"hello"

    def test_multiple_redirect_kinds(self, parser):
        payload = (
            b"HTTP/1.1 302 Found\r\nLocation: /a\r\n\r\n"
            b"HTTP/1.1 307 Temporary Redirect\r\nLocation: /b\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n<p>done</p>"
        )
        raw = parse(parser, payload)
        assert raw.response_string == "HTTP/1.1 200 OK"
        assert raw.body == b"<p>done</p>"

    def test_interim_continue_block(self, parser):
        payload = b"HTTP/1.1 100 Continue\r\n\r\nHTTP/1.1 201 Created\r\nLocation: /new\r\n\r\n"
        raw = parse(parser, payload, response_code=201)
        assert raw.response_string == "HTTP/1.1 201 Created"
        assert raw.response_headers == {"Location": "/new"}
        assert raw.body == b""

    def test_unfollowed_redirect_keeps_body(self, parser):
        payload = b"HTTP/1.1 301 Moved\r\nLocation: /x\r\n\r\n<a href=\"/x\">moved</a>"
        raw = parse(parser, payload, response_code=301, content_type="text/html")
        assert raw.response_string == "HTTP/1.1 301 Moved"
        assert raw.response_headers == {"Location": "/x"}
        assert raw.body == b"<a href=\"/x\">moved</a>"

    def test_body_containing_blank_lines(self, parser):
        payload = b"HTTP/1.1 200 OK\r\n\r\nline one\r\n\r\nline two"
        raw = parse(parser, payload)
        assert raw.body == b"line one\r\n\r\nline two"

    def test_set_cookie_collected(self, parser):
        cookies = {}
        payload = (
            b"HTTP/1.1 200 OK\r\n"
            b"Set-Cookie: a=1; Path=/\r\n"
            b"Set-Cookie: b=2; HttpOnly\r\n\r\n"
        )
        raw = parse(parser, payload, cookies=cookies)
        assert cookies == {"a": "1", "b": "2"}
        assert raw.response_headers["Set-Cookie"] == "b=2; HttpOnly"

    def test_cookies_from_redirect_blocks(self, parser):
        cookies = {"a": "old"}
        payload = (
            b"HTTP/1.1 301 Moved\r\nSet-Cookie: a=1\r\nLocation: /x\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nset-cookie: b=2\r\n\r\nok"
        )
        parse(parser, payload, cookies=cookies)
        assert cookies == {"a": "1", "b": "2"}

    def test_duplicate_headers_last_wins(self, parser):
        raw = parse(parser, b"HTTP/1.1 200 OK\r\nX-A: 1\r\nX-A: 2\r\n\r\n")
        assert raw.response_headers == {"X-A": "2"}

    def test_malformed_header_skipped(self, parser):
        raw = parse(parser, b"HTTP/1.1 200 OK\r\nNoSeparator\r\nX-Ok: yes\r\n\r\nbody")
        assert raw.response_headers == {"X-Ok": "yes"}
        assert raw.body == b"body"

    def test_bare_newlines(self, parser):
        raw = parse(parser, b"HTTP/1.1 200 OK\nContent-Type: text/plain\n\nhi")
        assert raw.response_headers == {"Content-Type": "text/plain"}
        assert raw.body == b"hi"

    def test_missing_content_type(self, parser):
        raw = parse(parser, b"HTTP/1.1 200 OK\r\n\r\n", content_type=None)
        assert raw.content_type == ""

    def test_raw_values_are_frozen(self, parser):
        raw = parse(parser, b"HTTP/1.1 200 OK\r\n\r\n")
        with pytest.raises(AttributeError):
            raw.body = b"changed"
