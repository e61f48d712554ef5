"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes an asset server actually emits, with their reason phrases.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK, 206 Partial Content (byte ranges)                 │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  3xx   │ 304 Not Modified (ETag short-circuit)                     │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 / 403 / 404 / 405 / 408 / 413 / 416                   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 / 503 / 505                                           │
    └────────┴───────────────────────────────────────────────────────────┘

HTTPStatus is an IntEnum, so `response.status == 304` works and the
value can be formatted directly into the status line.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes used by the asset server."""

    OK = 200
    PARTIAL_CONTENT = 206           # Range request fulfilled

    NOT_MODIFIED = 304              # Client copy is still current

    BAD_REQUEST = 400               # Malformed request syntax
    FORBIDDEN = 403                 # Traversal, directory, permissions
    NOT_FOUND = 404                 # No such file under the web root
    METHOD_NOT_ALLOWED = 405        # Anything but GET
    REQUEST_TIMEOUT = 408           # Client never finished its request
    PAYLOAD_TOO_LARGE = 413         # Request exceeds max_request_size
    RANGE_NOT_SATISFIABLE = 416     # Range starts past the end of file

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503       # Worker queue is full
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Not Modified"."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx."""
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        RFC 7230 §3.3: 1xx, 204 and 304 responses never include one.
        """
        return self != HTTPStatus.NOT_MODIFIED


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
