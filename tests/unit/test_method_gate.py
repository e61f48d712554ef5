"""
Unit tests for the method gate.
"""

import pytest

from assetserver.http import HTTPResponse, HTTPStatus
from assetserver.middleware.method_gate import MethodGateMiddleware, is_method_allowed


def test_only_exact_get_is_allowed():
    assert is_method_allowed("GET")
    for method in ("get", "Get", "HEAD", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", ""):
        assert not is_method_allowed(method)


@pytest.mark.parametrize("method", ["POST", "HEAD", "PUT", "DELETE", "get"])
def test_rejected_request_never_reaches_next(make_request, method):
    calls = []

    def next_handler(request):
        calls.append(request)
        return HTTPResponse()

    response = MethodGateMiddleware()(make_request(method, "/index.html"), next_handler)

    assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
    assert response.body == b""
    assert response.headers["Allow"] == "GET"
    assert "ETag" not in response.headers
    assert calls == []


def test_get_passes_through(make_request):
    sentinel = HTTPResponse(status=HTTPStatus.OK, body=b"ok")

    response = MethodGateMiddleware()(make_request("GET", "/"), lambda request: sentinel)

    assert response is sentinel
