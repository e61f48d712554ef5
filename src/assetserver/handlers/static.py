"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

The last stop of the chain: maps the (already rewritten) request path onto
the web root and returns the file.

    GET /css/site.css      →  <root>/css/site.css
    GET /                  →  <root>/index.html
    GET /docs/             →  <root>/docs/index.html, or 403 if absent

=============================================================================
PATH TRAVERSAL
=============================================================================

    GET /%2e%2e/%2e%2e/etc/passwd

The parser already refuses ".." in decoded paths, but symlinks can still
point outside the root, so every candidate is resolved and checked:

    full_path = (root / relative).resolve()
    full_path.relative_to(root)          # ValueError → 403

=============================================================================
BYTE RANGES
=============================================================================

One range per request, in any of the three RFC 7233 forms:

    Range: bytes=0-499        first 500 bytes
    Range: bytes=500-         everything from offset 500
    Range: bytes=-500         last 500 bytes

    satisfiable      → 206 Partial Content + Content-Range: bytes 0-499/1234
    past end of file → 416 + Content-Range: bytes */1234
    malformed, or several ranges → header ignored, full 200

=============================================================================
"""

import re
import logging
from pathlib import Path
from typing import Optional, Tuple
from datetime import datetime, timezone

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder, format_http_date,
    not_found, forbidden, range_not_satisfiable, internal_error,
)
from ..http.status_codes import HTTPStatus
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)

_RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")


class RangeNotSatisfiable(Exception):
    """A well-formed Range that selects no byte of the file."""

    def __init__(self, size: int):
        super().__init__(f"Range not satisfiable for {size} bytes")
        self.size = size


def parse_byte_range(header: str, size: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single-range Range header against a file of `size` bytes.

    Returns:
        Inclusive (start, end) offsets, or None when the header is absent,
        malformed or asks for more than one range.

    Raises:
        RangeNotSatisfiable: If the range is valid but lies outside the file.

        >>> parse_byte_range("bytes=0-99", 1000)
        (0, 99)
        >>> parse_byte_range("bytes=-100", 1000)
        (900, 999)
        >>> parse_byte_range("bytes=0-1,5-9", 1000) is None
        True
    """
    if not header:
        return None

    match = _RANGE_PATTERN.match(header.strip())
    if not match:
        return None

    start_s, end_s = match.groups()
    if not start_s and not end_s:
        return None

    if not start_s:
        # Suffix range: the last N bytes.
        length = int(end_s)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable(size)
        return max(0, size - length), size - 1

    start = int(start_s)
    end = int(end_s) if end_s else size - 1
    if end < start:
        return None
    if start >= size:
        raise RangeNotSatisfiable(size)
    return start, min(end, size - 1)


class StaticFileHandler:
    """
    Serves files below a root directory.

    Usage:
        static = StaticFileHandler("/srv/app", index_file="index.html")
        response = static.handle(request)

    Responses carry Content-Type, Last-Modified and Accept-Ranges; caching
    headers are left to the cache validator further up the chain.
    """

    def __init__(self, root_dir: str, index_file: str = "index.html"):
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            raise ValueError(f"Web root is not a directory: {root_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        relative = request.path.lstrip("/")

        try:
            full_path = (self.root_dir / relative).resolve()
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot resolve {request.path!r}: {e}")
            return not_found()

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {request.path}")
            return forbidden()

        if full_path.is_dir():
            index_path = full_path / self.index_file
            if not index_path.is_file():
                return forbidden()
            full_path = index_path

        if not full_path.is_file():
            return not_found()

        return self._serve_file(full_path, request)

    def _serve_file(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        try:
            stat = path.stat()
            size = stat.st_size
            mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

            builder = (ResponseBuilder()
                .content_type(get_content_type(path))
                .header("Last-Modified", format_http_date(mtime))
                .header("Accept-Ranges", "bytes"))

            try:
                byte_range = parse_byte_range(request.range, size)
            except RangeNotSatisfiable:
                return range_not_satisfiable(size)

            if byte_range is None:
                return builder.status(HTTPStatus.OK).body(path.read_bytes()).build()

            start, end = byte_range
            with path.open("rb") as f:
                f.seek(start)
                chunk = f.read(end - start + 1)

            return (builder
                .status(HTTPStatus.PARTIAL_CONTENT)
                .header("Content-Range", f"bytes {start}-{end}/{size}")
                .body(chunk)
                .build())

        except PermissionError:
            logger.warning(f"Permission denied: {path}")
            return forbidden()
        except OSError as e:
            logger.error(f"Error serving file {path}: {e}")
            return internal_error()
