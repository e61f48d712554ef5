"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

HTTPResponse is the value every handler and middleware passes back up the
chain; to_bytes() turns it into the wire format:

    HTTP/1.1 200 OK\r\n
    Content-Type: text/html; charset=utf-8\r\n
    ETag: /index.html-1718000000\r\n
    Cache-Control: max-age=2592000\r\n
    Content-Length: 1234\r\n          ← added automatically
    Date: Mon, 10 Jun 2024 10:00:00 GMT\r\n
    Server: assetserver/1.0\r\n
    \r\n
    <file bytes>

ResponseBuilder is the fluent way to assemble one:

    (ResponseBuilder()
        .status(HTTPStatus.PARTIAL_CONTENT)
        .header("Content-Range", "bytes 0-99/5000")
        .body(chunk)
        .build())

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus


SERVER_NAME = "assetserver/1.0"


@dataclass
class HTTPResponse:
    """A response on its way back to the client."""

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 304 Not Modified"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header; returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def to_bytes(self, server_name: str = SERVER_NAME) -> bytes:
        """
        Serialize for socket.sendall().

        Content-Length, Date and Server are filled in when missing. A
        status that forbids a body (304) is sent with neither a body nor
        a Content-Length.
        """
        response_headers = dict(self.headers)
        body = self.body

        if self.status.allows_body:
            response_headers.setdefault("Content-Length", str(len(body)))
        else:
            body = b""

        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            line = f"{name}: {value}"
            if "\r" in line or "\n" in line:
                raise ValueError(f"Line break in response header {name!r}")
            lines.append(line)
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n" + body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every method but build() returns the builder:

        ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("gone").build()
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Plain-text body, used for the short error pages."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Tell the client this connection ends after the response."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Example: "Wed, 01 Jan 2026 12:00:00 GMT". Always GMT; dt should be UTC.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the fixed responses the pipeline emits. Error pages are
# short plain-text bodies, matching what the static file collaborator
# writes for 403/404.
#
# =============================================================================

def not_modified(headers: Dict[str, str]) -> HTTPResponse:
    """304 Not Modified with the validator headers and no body."""
    return ResponseBuilder().status(HTTPStatus.NOT_MODIFIED).headers(headers).build()


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with an Allow header and an empty body."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .build())


def forbidden(message: str = "Forbidden") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.FORBIDDEN).text(message).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).text(message).build()


def range_not_satisfiable(size: int) -> HTTPResponse:
    """416 carrying the representation length, as RFC 7233 §4.4 asks."""
    return (ResponseBuilder()
        .status(HTTPStatus.RANGE_NOT_SATISFIABLE)
        .header("Content-Range", f"bytes */{size}")
        .text("Requested range not satisfiable")
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500; keep the message generic, details belong in the log."""
    return ResponseBuilder().status(HTTPStatus.INTERNAL_SERVER_ERROR).text(message).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Error sent straight from the connection loop; always closes."""
    return ResponseBuilder().status(status).text(message).close_connection().build()
