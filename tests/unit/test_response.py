"""
Unit tests for the response record and header formatting.
"""

import pytest

from simplehttp.http.request import Version
from simplehttp.http.response import (
    HTTPResponse,
    ResponseStatus,
    AcceptRanges,
    format_head,
)


def make_response(body: bytes = b"hello", **kwargs) -> HTTPResponse:
    fields = dict(
        version=Version.V1_1,
        status=ResponseStatus.OK,
        accept_ranges=AcceptRanges.NONE,
        content_type="text/html",
        body=body,
        requested_path="/",
    )
    fields.update(kwargs)
    return HTTPResponse(**fields)


class TestResponseStatus:
    """Tests for status rendering."""

    def test_status_text(self):
        """Test the exact status-line text."""
        assert str(ResponseStatus.OK) == "200 OK"
        assert str(ResponseStatus.NOT_FOUND) == "404 NOT FOUND"

    def test_status_is_int(self):
        """Test that statuses compare as integers."""
        assert ResponseStatus.OK == 200
        assert ResponseStatus.NOT_FOUND == 404

    def test_accept_ranges_text(self):
        """Test accept-ranges line text."""
        assert str(AcceptRanges.BYTES) == "accept-ranges: bytes"
        assert str(AcceptRanges.NONE) == "accept-ranges: none"


class TestFormatHead:
    """Tests for the header formatter."""

    def test_layout(self):
        """Test the exact header block, line terminators included."""
        head = format_head(
            Version.V1_1, ResponseStatus.OK, AcceptRanges.BYTES, "image/png", 42
        )

        assert head == (
            "HTTP/1.1 200 OK\n"
            "accept-ranges: bytes\n"
            "Content-Type: image/png\n"
            "Content-Length: 42\r\n\r\n"
        )

    def test_version_is_threaded_through(self):
        """Test that the request's version appears on the status line."""
        head = format_head(
            Version.V1_0, ResponseStatus.NOT_FOUND, AcceptRanges.NONE, "text/html", 0
        )

        assert head.startswith("HTTP/1.0 404 NOT FOUND\n")


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_content_length_matches_body(self):
        """Test that Content-Length is derived from the body."""
        body = "héllo".encode("utf-8")
        response = make_response(body=body)

        assert response.content_length == len(body) == 6
        assert b"Content-Length: 6\r\n\r\n" in response.to_bytes()

    def test_payload_is_head_plus_body(self):
        """Test that the body follows the header block unchanged."""
        body = b"\x00\xffbinary\x80"
        response = make_response(body=body)

        assert response.to_bytes() == response.head + body
        assert response.to_bytes().endswith(b"\r\n\r\n" + body)

    def test_status_line(self):
        """Test status line property."""
        assert make_response().status_line == "HTTP/1.1 200 OK"

    def test_text_is_lossy_view(self):
        """Test that invalid UTF-8 is replaced in the text view only."""
        response = make_response(body=b"ok\xff")

        assert response.text.endswith("ok\ufffd")
        assert response.to_bytes().endswith(b"ok\xff")

    def test_immutable(self):
        """Test that the response cannot be modified."""
        response = make_response()

        with pytest.raises(AttributeError):
            response.body = b"other"

    def test_content_length_not_settable(self):
        """Test that content_length is not a constructor argument."""
        with pytest.raises(TypeError):
            make_response(content_length=999)

    def test_requested_path_echoed(self):
        """Test that the requested path is kept for logging."""
        assert make_response(requested_path="/docs").requested_path == "/docs"
