"""
Method gate: only GET gets past this point.

Anything else, including HEAD and lowercase "get", is answered with
405 Method Not Allowed and an empty body. The rest of the chain never
runs for a rejected request, so it gets no ETag, no Cache-Control and
no file lookup.
"""

import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, method_not_allowed


logger = logging.getLogger(__name__)

ALLOWED_METHOD = "GET"


def is_method_allowed(method: str) -> bool:
    """True only for the exact, case-sensitive token "GET"."""
    return method == ALLOWED_METHOD


class MethodGateMiddleware(Middleware):

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if not is_method_allowed(request.method):
            logger.debug(f"Rejected method {request.method!r} for {request.path}")
            return method_not_allowed([ALLOWED_METHOD])
        return next(request)
