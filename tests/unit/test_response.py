"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timezone

import pytest

from assetserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    not_modified,
    method_not_allowed,
    not_found,
    forbidden,
    range_not_satisfiable,
    internal_error,
    error_response,
)
from assetserver.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_MODIFIED).status_line == "HTTP/1.1 304 Not Modified"
        assert (HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED).status_line
                == "HTTP/1.1 405 Method Not Allowed")

    def test_to_bytes_includes_headers(self):
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"ETag": "/a.css-1"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"ETag: /a.css-1\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: assetserver/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_not_modified_has_no_body_or_length(self):
        response = HTTPResponse(status=HTTPStatus.NOT_MODIFIED, body=b"should not be sent")
        result = response.to_bytes()

        assert b"Content-Length" not in result
        assert result.endswith(b"\r\n\r\n")

    @pytest.mark.parametrize("value", ["/a\r\nSet-Cookie: x=1", "/a\nX: 1"])
    def test_line_break_in_header_value_refused(self, value):
        with pytest.raises(ValueError):
            HTTPResponse(headers={"ETag": value}).to_bytes()

    def test_empty_body_gets_zero_length(self):
        result = HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED).to_bytes()
        assert b"Content-Length: 0\r\n" in result

    def test_set_header_chaining(self):
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers == {"X-One": "1", "X-Two": "2"}

    def test_set_body_encodes_text(self):
        assert HTTPResponse().set_body("héllo").body == "héllo".encode("utf-8")


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_defaults(self):
        response = ResponseBuilder().build()
        assert response.status == HTTPStatus.OK
        assert response.body == b""

    def test_text_body(self):
        response = ResponseBuilder().text("Hello, World!").build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"Hello, World!"

    def test_close_connection(self):
        response = ResponseBuilder().close_connection().build()
        assert response.headers["Connection"] == "close"

    def test_method_chaining(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT)
            .content_type("image/png")
            .headers({"Content-Range": "bytes 0-1/10"})
            .body(b"\x89P")
            .build())

        assert response.status == HTTPStatus.PARTIAL_CONTENT
        assert response.headers["Content-Type"] == "image/png"
        assert response.headers["Content-Range"] == "bytes 0-1/10"
        assert response.body == b"\x89P"


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    def test_not_modified(self):
        response = not_modified({"ETag": "/x-1", "Cache-Control": "max-age=2592000"})

        assert response.status == HTTPStatus.NOT_MODIFIED
        assert response.body == b""
        assert response.headers["ETag"] == "/x-1"

    def test_method_not_allowed_is_empty(self):
        response = method_not_allowed(["GET"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"
        assert response.body == b""

    def test_error_pages(self):
        assert not_found().status == HTTPStatus.NOT_FOUND
        assert forbidden().status == HTTPStatus.FORBIDDEN
        assert internal_error().status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_range_not_satisfiable(self):
        response = range_not_satisfiable(1234)

        assert response.status == HTTPStatus.RANGE_NOT_SATISFIABLE
        assert response.headers["Content-Range"] == "bytes */1234"

    def test_error_response_closes(self):
        response = error_response(HTTPStatus.BAD_REQUEST, "bad")

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.headers["Connection"] == "close"
        assert response.body == b"bad"


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.RANGE_NOT_SATISFIABLE.phrase == "Range Not Satisfiable"
        assert all(status.phrase != "Unknown" for status in HTTPStatus)

    def test_status_categories(self):
        assert HTTPStatus.PARTIAL_CONTENT.is_success
        assert not HTTPStatus.NOT_MODIFIED.is_success
        assert HTTPStatus.NOT_FOUND.is_error
        assert not HTTPStatus.OK.is_error
        assert not HTTPStatus.NOT_MODIFIED.allows_body


class TestFormatHTTPDate:
    """Tests for HTTP date formatting."""

    def test_format(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"
