"""
=============================================================================
RESPONSE COMPRESSION
=============================================================================

Compresses text assets on the way out, in the best coding the client
accepts:

    Accept-Encoding: gzip, deflate, br
                                    ^^
    → Content-Encoding: br
      Content-Length: <compressed size>
      Vary: Accept-Encoding

Offered codings, in order of preference:

    br        brotli package     smallest text output
    gzip      gzip module        understood by every client
    deflate   zlib module        zlib-wrapped DEFLATE, as RFC 9110 defines it

A q-value from the client outranks that order ("br;q=0.5, gzip" picks
gzip); "*" stands for any coding the client did not name, and "q=0"
refuses one.

Only full 200 responses are touched. A 206 carries a Content-Range into the
UNcompressed file, a 304 has no body, and error pages are tiny, so all of
those pass through as they are. Images, fonts and archives are already
compressed and are left alone; so is anything below min_size or anything
the coder fails to shrink.

=============================================================================
"""

import gzip
import zlib
import logging
from typing import Callable, Dict, Optional, Sequence, Set

import brotli

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

ENCODINGS = ("br", "gzip", "deflate")

_ALIASES = {"x-gzip": "gzip"}


def parse_accept_encoding(accept_encoding: str) -> Dict[str, float]:
    """
    Map each coding named in Accept-Encoding to its q-value.

        >>> parse_accept_encoding("gzip;q=0.8, br")
        {'gzip': 0.8, 'br': 1.0}

    A malformed q-value counts as a refusal (0.0).
    """
    qvalues: Dict[str, float] = {}
    for item in accept_encoding.split(","):
        coding, _, params = item.strip().partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        coding = _ALIASES.get(coding, coding)

        qvalue = 1.0
        params = params.strip().lower()
        if params.startswith("q="):
            try:
                qvalue = float(params[2:])
            except ValueError:
                qvalue = 0.0
        qvalues[coding] = qvalue
    return qvalues


def negotiate_encoding(
    accept_encoding: str,
    offered: Sequence[str] = ENCODINGS,
) -> Optional[str]:
    """
    Pick the coding to use, or None to send the body as is.

    Highest client q-value wins; ties go to the earlier entry of offered.
    """
    qvalues = parse_accept_encoding(accept_encoding)
    wildcard = qvalues.get("*", 0.0)

    best, best_q = None, 0.0
    for coding in offered:
        qvalue = qvalues.get(coding, wildcard)
        if qvalue > best_q:
            best, best_q = coding, qvalue
    return best


class CompressionMiddleware(Middleware):
    """
    Compresses compressible 200 responses with br, gzip or deflate.

    Args:
        min_size: Bodies smaller than this many bytes are sent as is.
        level: gzip and deflate level, 1 (fast) to 9 (small).
        brotli_quality: brotli quality, 0 (fast) to 11 (small).
        encodings: Codings offered, most preferred first.
        compressible_types: Base MIME types worth compressing.
    """

    COMPRESSIBLE_TYPES: Set[str] = {
        "text/html",
        "text/css",
        "text/plain",
        "text/csv",
        "text/markdown",
        "text/xml",
        "text/javascript",
        "application/javascript",
        "application/json",
        "application/manifest+json",
        "application/xml",
        "application/wasm",
        "image/svg+xml",
    }

    def __init__(
        self,
        min_size: int = 1024,
        level: int = 6,
        brotli_quality: int = 5,
        encodings: Sequence[str] = ENCODINGS,
        compressible_types: Optional[Set[str]] = None,
    ):
        unknown = set(encodings) - set(ENCODINGS)
        if unknown:
            raise ValueError(f"Unsupported encodings: {sorted(unknown)}")
        self.min_size = min_size
        self.level = level
        self.brotli_quality = brotli_quality
        self.encodings = tuple(encodings)
        self.compressible_types = compressible_types or self.COMPRESSIBLE_TYPES

        self._coders: Dict[str, Callable[[bytes], bytes]] = {
            "br": lambda body: brotli.compress(body, quality=self.brotli_quality),
            "gzip": lambda body: gzip.compress(body, compresslevel=self.level),
            "deflate": lambda body: zlib.compress(body, self.level),
        }

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if not self._should_compress(response):
            return response

        coding = negotiate_encoding(request.accept_encoding, self.encodings)
        if coding is None:
            return response

        compressed = self._coders[coding](response.body)
        if len(compressed) >= len(response.body):
            return response

        logger.debug(
            f"{coding} {request.path}: {len(response.body)} -> {len(compressed)} bytes"
        )
        response.body = compressed
        response.headers["Content-Encoding"] = coding
        response.headers["Content-Length"] = str(len(compressed))

        vary = response.headers.get("Vary", "")
        if "accept-encoding" not in vary.lower():
            response.headers["Vary"] = f"{vary}, Accept-Encoding".lstrip(", ")

        return response

    def _should_compress(self, response: HTTPResponse) -> bool:
        if response.status != HTTPStatus.OK:
            return False
        if "Content-Encoding" in response.headers or "Content-Range" in response.headers:
            return False
        if len(response.body) < self.min_size:
            return False

        content_type = response.headers.get("Content-Type", "")
        base_type = content_type.split(";")[0].strip().lower()
        return base_type in self.compressible_types
