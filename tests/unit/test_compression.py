"""
Unit tests for response compression.
"""

import gzip
import zlib

import brotli
import pytest

from assetserver.http import HTTPResponse, HTTPStatus
from assetserver.middleware.compression import (
    CompressionMiddleware,
    negotiate_encoding,
    parse_accept_encoding,
)


TEXT = b"body { color: red; }\n" * 200


def css_response(status=HTTPStatus.OK, body=TEXT, **headers):
    return HTTPResponse(
        status=status,
        headers={"Content-Type": "text/css; charset=utf-8", **headers},
        body=body,
    )


@pytest.mark.parametrize("header, expected", [
    ("gzip", "gzip"),
    ("x-gzip", "gzip"),
    ("GZIP", "gzip"),
    ("deflate", "deflate"),
    ("gzip, deflate, br", "br"),
    ("br;q=1.0, gzip;q=0.8", "br"),
    ("br;q=0.5, gzip", "gzip"),
    ("br;q=0, gzip;q=0.1, deflate;q=0.2", "deflate"),
    ("*", "br"),
    ("*, br;q=0", "gzip"),
    ("", None),
    ("identity", None),
    ("gzip;q=0", None),
    ("gzip;q=oops", None),
])
def test_negotiate_encoding(header, expected):
    assert negotiate_encoding(header) == expected


def test_negotiation_limited_to_offered():
    assert negotiate_encoding("br, gzip;q=0.5", offered=("gzip",)) == "gzip"
    assert negotiate_encoding("br", offered=("gzip", "deflate")) is None


def test_parse_accept_encoding():
    assert parse_accept_encoding("gzip;q=0.8, br, ,") == {"gzip": 0.8, "br": 1.0}


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError):
        CompressionMiddleware(encodings=("zstd",))


@pytest.mark.parametrize("accept, coding, decode", [
    ("br", "br", brotli.decompress),
    ("deflate", "deflate", zlib.decompress),
    ("gzip, deflate, br", "br", brotli.decompress),
])
def test_compresses_with_negotiated_coding(make_request, accept, coding, decode):
    response = CompressionMiddleware()(
        make_request("GET", "/site.css", {"Accept-Encoding": accept}),
        lambda request: css_response(),
    )

    assert response.headers["Content-Encoding"] == coding
    assert response.headers["Content-Length"] == str(len(response.body))
    assert decode(response.body) == TEXT


def test_gzip_only_deployment(make_request):
    response = CompressionMiddleware(encodings=("gzip",))(
        make_request("GET", "/site.css", {"Accept-Encoding": "br, gzip"}),
        lambda request: css_response(),
    )

    assert response.headers["Content-Encoding"] == "gzip"


def test_compresses_text(make_request):
    response = CompressionMiddleware()(
        make_request("GET", "/site.css", {"Accept-Encoding": "gzip"}),
        lambda request: css_response(),
    )

    assert response.headers["Content-Encoding"] == "gzip"
    assert response.headers["Vary"] == "Accept-Encoding"
    assert response.headers["Content-Length"] == str(len(response.body))
    assert gzip.decompress(response.body) == TEXT


def test_skipped_without_accept_encoding(make_request):
    response = CompressionMiddleware()(make_request("GET", "/site.css"), lambda request: css_response())

    assert "Content-Encoding" not in response.headers
    assert response.body == TEXT


@pytest.mark.parametrize("status", [
    HTTPStatus.PARTIAL_CONTENT,
    HTTPStatus.NOT_MODIFIED,
    HTTPStatus.NOT_FOUND,
])
def test_only_full_responses_are_compressed(make_request, status):
    response = CompressionMiddleware()(
        make_request("GET", "/site.css", {"Accept-Encoding": "gzip"}),
        lambda request: css_response(status=status),
    )

    assert "Content-Encoding" not in response.headers


def test_binary_types_untouched(make_request):
    image = HTTPResponse(headers={"Content-Type": "image/png"}, body=b"\x00" * 4096)

    response = CompressionMiddleware()(
        make_request("GET", "/img.png", {"Accept-Encoding": "gzip"}),
        lambda request: image,
    )

    assert "Content-Encoding" not in response.headers


def test_small_bodies_untouched(make_request):
    response = CompressionMiddleware(min_size=1024)(
        make_request("GET", "/a.css", {"Accept-Encoding": "gzip"}),
        lambda request: css_response(body=b"a{}"),
    )

    assert response.body == b"a{}"


def test_existing_vary_is_extended(make_request):
    response = CompressionMiddleware()(
        make_request("GET", "/site.css", {"Accept-Encoding": "gzip"}),
        lambda request: css_response(Vary="Origin"),
    )

    assert response.headers["Vary"] == "Origin, Accept-Encoding"
