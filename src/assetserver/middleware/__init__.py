"""
=============================================================================
MIDDLEWARE
=============================================================================

The request pipeline, outermost first:

    LoggingMiddleware          access log, X-Request-ID
    MethodGateMiddleware       non-GET → 405
    CacheValidatorMiddleware   ETag match → 304   (left out with NO_CACHE)
    PathRewriteMiddleware      strip APP_ROOT     (left out without a prefix)
    CompressionMiddleware      br, gzip, deflate  (left out with --no-compress)
        │
        ▼
    StaticFileHandler.handle

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .method_gate import MethodGateMiddleware, is_method_allowed
from .cache import (
    CacheValidatorMiddleware,
    CacheDecision,
    evaluate,
    make_etag,
    new_etag_seed,
)
from .rewrite import PathRewriter, PathRewriteMiddleware, create_path_rewriter
from .compression import CompressionMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "MethodGateMiddleware",
    "is_method_allowed",
    "CacheValidatorMiddleware",
    "CacheDecision",
    "evaluate",
    "make_etag",
    "new_etag_seed",
    "PathRewriter",
    "PathRewriteMiddleware",
    "create_path_rewriter",
    "CompressionMiddleware",
]
