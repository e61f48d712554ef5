"""
=============================================================================
CACHE VALIDATOR
=============================================================================

Conditional caching with generation-seeded ETags.

Every path gets a validator built from the path the client asked for and a
SEED captured once when the server starts:

    seed = "1718000000"                      (process start, Unix seconds)
    etag = "/static/app.js" + "-" + seed  →  "/static/app.js-1718000000"

The seed makes a deploy the invalidation event: restart the server and
every ETag changes, so browsers revalidate everything once; while the
process lives, the same path always yields the same ETag. File contents
are never hashed, so editing a file in place is NOT detected until the
next restart.

Per request:

    ┌──────────────┐   If-None-Match contains etag?   ┌─────────────────┐
    │ build etag   │─────────────── yes ─────────────►│ 304, empty body │
    │ from path    │                                  │ chain stops     │
    └──────┬───────┘                                  └─────────────────┘
           │ no / header absent
           ▼
    next(request) → response + ETag + Cache-Control: max-age=2592000

The match is a plain substring test, so quoted values, W/ prefixes and
comma-separated lists all match as long as the etag text appears in them.

=============================================================================
"""

import time
import logging
from enum import Enum
from typing import Dict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, not_modified


logger = logging.getLogger(__name__)

# 30 days
DEFAULT_MAX_AGE = 2592000


class CacheDecision(Enum):
    SERVE_FRESH = "serve_fresh"
    NOT_MODIFIED = "not_modified"


def new_etag_seed() -> str:
    """Current Unix time in whole seconds, as a string."""
    return str(int(time.time()))


def make_etag(path: str, seed: str) -> str:
    return f"{path}-{seed}"


def evaluate(etag: str, if_none_match: str) -> CacheDecision:
    """
    Decide between a full response and a 304.

        >>> evaluate("/a.css-1", '"/a.css-1"')
        <CacheDecision.NOT_MODIFIED: 'not_modified'>
        >>> evaluate("/a.css-1", "")
        <CacheDecision.SERVE_FRESH: 'serve_fresh'>
    """
    if if_none_match and etag in if_none_match:
        return CacheDecision.NOT_MODIFIED
    return CacheDecision.SERVE_FRESH


class CacheValidatorMiddleware(Middleware):
    """
    Adds ETag / Cache-Control and answers matching conditional GETs with 304.

    The seed is fixed at construction; the middleware holds no other state,
    so one instance serves every worker thread.

    Args:
        seed: Generation marker, normally new_etag_seed() at startup.
        max_age: Cache-Control max-age in seconds.
    """

    def __init__(self, seed: str, max_age: int = DEFAULT_MAX_AGE):
        if not seed:
            raise ValueError("ETag seed must not be empty")
        self.seed = seed
        self.max_age = max_age
        self.cache_control = f"max-age={max_age}"

    def etag_for(self, path: str) -> str:
        return make_etag(path, self.seed)

    def validator_headers(self, path: str) -> Dict[str, str]:
        return {
            "ETag": self.etag_for(path),
            "Cache-Control": self.cache_control,
        }

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        headers = self.validator_headers(request.path)

        decision = evaluate(headers["ETag"], request.if_none_match)
        if decision is CacheDecision.NOT_MODIFIED:
            logger.debug(f"Not modified: {request.path}")
            return not_modified(headers)

        response = next(request)
        response.headers.update(headers)
        return response
