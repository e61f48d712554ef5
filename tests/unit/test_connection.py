"""
Unit tests for request framing on a client connection.
"""

import socket

import pytest

from assetserver.core.connection import (
    Connection,
    ConnectionState,
    RequestTooLarge,
    declared_body_length,
)


@pytest.fixture
def pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    client_side.close()
    server_side.close()


def make_conn(sock, **kwargs):
    kwargs.setdefault("timeout", 2.0)
    kwargs.setdefault("keep_alive_timeout", 0.2)
    return Connection(socket=sock, address=("127.0.0.1", 4000), **kwargs)


def test_reads_one_request(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

    conn = make_conn(server_side)

    assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
    assert conn.requests_handled == 1


def test_pipelined_requests_are_split(pair):
    server_side, client_side = pair
    first = b"GET /a HTTP/1.1\r\n\r\n"
    second = b"GET /b HTTP/1.1\r\n\r\n"
    client_side.sendall(first + second)

    conn = make_conn(server_side)

    assert conn.read_request() == first
    assert conn.read_request() == second


def test_body_follows_content_length(pair):
    server_side, client_side = pair
    client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcGET")

    conn = make_conn(server_side)

    assert conn.read_request().endswith(b"\r\n\r\nabc")


def test_closed_peer_returns_none(pair):
    server_side, client_side = pair
    client_side.shutdown(socket.SHUT_WR)

    assert make_conn(server_side).read_request() is None


def test_first_request_timeout_raises(pair):
    server_side, _ = pair
    conn = make_conn(server_side, timeout=0.1)

    with pytest.raises(TimeoutError):
        conn.read_request()


def test_idle_keep_alive_timeout_returns_none(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
    conn = make_conn(server_side)
    conn.read_request()

    assert conn.read_request() is None


def test_oversized_request(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET /" + b"a" * 200)

    conn = make_conn(server_side, max_request_size=64, buffer_size=32)

    with pytest.raises(RequestTooLarge):
        conn.read_request()


def test_close_is_idempotent(pair):
    server_side, _ = pair
    conn = make_conn(server_side)

    with conn:
        pass
    conn.close()

    assert conn.state is ConnectionState.CLOSED


@pytest.mark.parametrize("head, expected", [
    (b"GET / HTTP/1.1\r\nContent-Length: 12", 12),
    (b"GET / HTTP/1.1\r\ncontent-length:  7 ", 7),
    (b"GET / HTTP/1.1\r\nContent-Length: nope", 0),
    (b"GET / HTTP/1.1\r\nHost: x", 0),
])
def test_declared_body_length(head, expected):
    assert declared_body_length(head) == expected
