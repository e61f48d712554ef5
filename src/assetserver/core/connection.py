"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted socket. TCP hands over bytes in arbitrary chunks, so the
connection buffers until it has a whole request:

    recv() → "GET /app.js HT"
    recv() → "TP/1.1\r\nHost: x\r\n"
    recv() → "\r\n"                   ← header terminator, request complete

Bytes that arrive after the request (a pipelined next request) stay in
the buffer for the following read_request() call.

Timeouts:

    first request on the connection   timeout             (default 30s)
    every later (keep-alive) request  keep_alive_timeout  (default 5s)

A keep-alive timeout is a normal way for a connection to end; a timeout
on the first request is reported as TimeoutError so the server can
answer 408.

=============================================================================
"""

import socket
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSED = "closed"


class RequestTooLarge(ValueError):
    """The client sent more than max_request_size bytes for one request."""


class _PeerClosed(Exception):
    pass


def declared_body_length(head: bytes) -> int:
    """Content-Length from a raw header block; 0 when absent or unparsable."""
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b":")
        if name.strip().lower() != b"content-length":
            continue
        try:
            return max(0, int(value.strip()))
        except ValueError:
            return 0
    return 0


@dataclass
class Connection:
    """
    A client socket plus its read buffer.

    Usable as a context manager; leaving the block closes the socket:

        with Connection(sock, addr) as conn:
            data = conn.read_request()
            conn.send_response(payload)
    """

    socket: socket.socket
    address: tuple[str, int]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 64 * 1024

    _pending: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete request (headers plus Content-Length body).

        Returns:
            The request bytes, or None when the client closed the
            connection or an idle keep-alive connection timed out.

        Raises:
            TimeoutError: If the first request does not arrive in time.
            RequestTooLarge: If the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING
        idle = self.requests_handled > 0
        if idle:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            head_end = self._fill_until_headers()
            request_end = head_end + len(HEADER_TERMINATOR)
            request_end += declared_body_length(bytes(self._pending[:head_end]))
            self._fill_to(request_end)
        except _PeerClosed:
            return None
        except socket.timeout:
            if idle:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")
        finally:
            self.socket.settimeout(self.timeout)

        data = bytes(self._pending[:request_end])
        del self._pending[:request_end]
        self.requests_handled += 1
        return data

    def _fill_until_headers(self) -> int:
        while True:
            head_end = self._pending.find(HEADER_TERMINATOR)
            if head_end != -1:
                return head_end
            self._receive()

    def _fill_to(self, size: int) -> None:
        # A body cut short by the peer is handed on as-is; the parser
        # works from what arrived.
        try:
            while len(self._pending) < size:
                self._receive()
        except _PeerClosed:
            pass

    def _receive(self) -> None:
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            chunk = b""
        if not chunk:
            raise _PeerClosed()
        self._pending += chunk
        if len(self._pending) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._pending)} bytes")

    def send_response(self, data: bytes) -> bool:
        """sendall() the response; False if the client has gone away."""
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def set_keep_alive(self) -> None:
        self.state = ConnectionState.KEEP_ALIVE

    def close(self) -> None:
        """Half-close, drain what the client still sends, then release the fd."""
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED

        try:
            self.socket.shutdown(socket.SHUT_WR)
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            # Peer already gone; nothing left to drain.
            pass
        finally:
            self.socket.close()

        logger.debug(f"[{self.id}] Closed after {self.requests_handled} requests")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
