"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

    GET /static/img.png?v=3 HTTP/1.1\r\n        ← request line
    Host: assets.example.com\r\n                 ← headers
    If-None-Match: "/static/img.png-1718000000"\r\n
    Range: bytes=0-1023\r\n
    \r\n                                         ← end of headers

The parser is deliberately permissive about the METHOD token: any RFC 7230
token is accepted here so that the method gate, not the parser, decides
what gets a 405. It is strict about the things that would break file
resolution further down:

    - the path is URL-decoded ("%20" → " ")
    - a decoded "..", as a whole path segment, is rejected with 400
      ("/a/../b" is refused, "/jquery..min.js" is just a file name)
    - control characters in the decoded path ("%0d%0a") are rejected
      with 400; the path ends up in the ETag response header
    - only HTTP/1.0 and HTTP/1.1 are understood (505 otherwise)

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
from urllib.parse import urlsplit, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code to answer with:

        400 Bad Request                 - malformed request line or path
        413 Payload Too Large           - request exceeds the size limit
        505 HTTP Version Not Supported  - anything but HTTP/1.0 and 1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase; HTTP header names are
    case-insensitive, so normalizing once at parse time keeps lookups
    simple everywhere else.

    Instances are treated as values: middleware that needs a different
    path (the path rewriter) builds a copy with dataclasses.replace()
    instead of mutating the request it was given.
    """

    method: str
    path: str                            # URL-decoded, without query string
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query: str = ""                      # Raw query string, kept for logs
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def if_none_match(self) -> str:
        """Raw If-None-Match value, or "" when the client sent none."""
        return self.headers.get("if-none-match", "")

    @property
    def range(self) -> str:
        """Raw Range value, or "" when absent."""
        return self.headers.get("range", "")

    @property
    def accept_encoding(self) -> str:
        return self.headers.get("accept-encoding", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after this response.

        HTTP/1.1 keeps alive unless the client says "Connection: close";
        HTTP/1.0 closes unless the client asks for "keep-alive".
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    Usage:
        parser = RequestParser(max_request_size=64 * 1024)
        request = parser.parse(raw_bytes, ("10.0.0.7", 51234))
    """

    # token = 1*tchar (RFC 7230 §3.2.6); validity of the method itself is
    # the method gate's business.
    REQUEST_LINE_PATTERN = re.compile(
        r"^([!#$%&'*+.^_`|~0-9A-Za-z-]+) ([^ ]+) (HTTP/\d\.\d)$"
    )
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")
    CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw request bytes.

        Args:
            data: Bytes of one complete request (headers plus body).
            client_address: (ip, port) of the peer, for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed or too large.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query=query,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Split "METHOD SP request-target SP HTTP-version".

        Returns:
            (method, decoded path, raw query string, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        raw_path, query = self._split_target(target)
        path = unquote(raw_path) or "/"

        if self.CONTROL_CHARS.search(path):
            raise HTTPParseError("Invalid path: contains control characters")

        # Resolution against the web root must never climb out of it.
        if ".." in path.split("/"):
            raise HTTPParseError("Invalid path: contains a .. segment")

        return method, path, query, version

    @staticmethod
    def _split_target(target: str) -> tuple[str, str]:
        """
        Split a request-target into (raw path, raw query).

        Origin-form ("/a/b?x=1") is split on the first "?", so "//a" stays a
        path. Absolute-form ("http://host/a?x=1") goes through urlsplit.
        """
        if target.startswith("/"):
            path, _, query = target.partition("?")
            return path, query
        if "://" in target:
            parts = urlsplit(target)
            return parts.path, parts.query
        raise HTTPParseError(f"Invalid request target: {target!r}")

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a lowercase-keyed dict.

        Repeated headers are folded into one comma-separated value, which
        is also how a client may send several If-None-Match candidates.
        Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            # obs-fold continuation line
            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
