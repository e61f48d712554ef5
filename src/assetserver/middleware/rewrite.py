"""
=============================================================================
PATH REWRITER
=============================================================================

Lets the server sit behind a URL prefix without moving files around. With
APP_ROOT="/static" the web root is addressed as:

    /static/img.png   ──►  /img.png
    /static/          ──►  /
    /img.png          ──►  /img.png        (no prefix, untouched)
    /static           ──►  ""              (served as the web root)

Rules:

    - at most ONE leading occurrence of the prefix is removed
    - the comparison is a plain string prefix test, so "/static" also
      matches "/staticfoo" (→ "foo")
    - when stripping would not make the path strictly shorter, the
      original path is returned
    - an empty prefix or "/" means the rewriter is disabled

The rewrite happens AFTER the cache validator, so ETags are always built
from the path the client asked for.

=============================================================================
"""

import logging
from dataclasses import replace
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

# Prefixes that leave every path unchanged.
_DISABLED_PREFIXES = ("", "/")


class PathRewriter:
    """Strips a fixed leading prefix from request paths."""

    __slots__ = ("_prefix",)

    def __init__(self, prefix: str):
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def rewrite(self, path: str) -> str:
        """
        Remove the prefix from the start of path.

            >>> PathRewriter("/static").rewrite("/static/img.png")
            '/img.png'
            >>> PathRewriter("/static").rewrite("/static")
            ''
        """
        if self._prefix in _DISABLED_PREFIXES or not path.startswith(self._prefix):
            return path

        stripped = path[len(self._prefix):]
        if len(stripped) >= len(path):
            return path
        return stripped

    def __repr__(self) -> str:
        return f"PathRewriter(prefix={self._prefix!r})"


def create_path_rewriter(prefix: str) -> Optional[PathRewriter]:
    """
    Build a rewriter for prefix, or None when prefix is "" or "/".

    None tells the pipeline to leave the rewrite step out entirely.
    """
    if prefix in _DISABLED_PREFIXES:
        return None
    return PathRewriter(prefix)


class PathRewriteMiddleware(Middleware):
    """Hands the next link a copy of the request with the rewritten path."""

    def __init__(self, rewriter: PathRewriter):
        self.rewriter = rewriter

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        new_path = self.rewriter.rewrite(request.path)
        if new_path == request.path:
            return next(request)

        logger.debug(f"Rewrote {request.path} -> {new_path}")
        return next(replace(request, path=new_path))
