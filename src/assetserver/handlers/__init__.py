"""
=============================================================================
HANDLERS
=============================================================================

The terminal handler of the middleware chain. There is exactly one: the
static file handler, which turns a method-checked, rewritten request into
a file response (or 403 / 404 / 416 / 500).

=============================================================================
"""

from .static import StaticFileHandler, RangeNotSatisfiable, parse_byte_range

__all__ = [
    "StaticFileHandler",
    "RangeNotSatisfiable",
    "parse_byte_range",
]
