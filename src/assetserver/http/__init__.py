"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Protocol types shared by the middleware chain and the file handler:

    request.py       raw bytes → HTTPRequest
    response.py      HTTPResponse / ResponseBuilder → raw bytes
    status_codes.py  HTTPStatus enum with reason phrases
    mime_types.py    file extension → Content-Type

Nothing in here touches sockets or the filesystem.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    not_modified,
    method_not_allowed,
    forbidden,
    not_found,
    range_not_satisfiable,
    internal_error,
    error_response,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "not_modified",
    "method_not_allowed",
    "forbidden",
    "not_found",
    "range_not_satisfiable",
    "internal_error",
    "error_response",
    "HTTPStatus",
    "get_mime_type",
    "get_content_type",
]
