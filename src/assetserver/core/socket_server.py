"""
=============================================================================
TCP ACCEPT LOOP
=============================================================================

    socket() → setsockopt() → bind() → listen() → accept() ...
                                                     │
                                                     ▼
                                         Connection(sock, addr)
                                                     │
                                                     ▼
                                         on_connection(conn)

HOST may be an IPv4 or IPv6 literal; the address family follows it. With
PORT=0 the kernel picks a free port, readable afterwards from
bound_address.

The listening socket has a 1 second timeout so the loop notices stop()
promptly. SIGINT and SIGTERM trigger the same stop, but only when the loop
runs in the main thread (the only thread Python lets install signal
handlers).

=============================================================================
"""

import socket
import signal
import logging
import threading
from functools import partial
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0

ConnectionCallback = Callable[[Connection], None]


def address_family(host: str) -> socket.AddressFamily:
    """AF_INET6 for IPv6 literals such as "::" or "::1", AF_INET otherwise."""
    return socket.AF_INET6 if ":" in host else socket.AF_INET


class SocketServer:
    """
    Owns the listening socket and hands every accepted client, wrapped in a
    Connection, to a callback.

        listener = SocketServer(config)
        listener.start(on_connection)     # blocks until stop()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._listener: Optional[socket.socket] = None
        self._accepting = False
        self._ready = threading.Event()
        self._saved_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._accepting

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """(host, port) actually bound, or None before start()."""
        if self._listener is None:
            return None
        return self._listener.getsockname()[:2]

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening."""
        return self._ready.wait(timeout)

    def start(self, on_connection: ConnectionCallback) -> None:
        """
        Bind, listen and run the accept loop.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._listener = self._bind()
        self._accepting = True
        self._install_signal_handlers()
        host, port = self.bound_address
        logger.info(f"Listening on {host}:{port}")
        self._ready.set()

        try:
            self._serve(on_connection)
        finally:
            self._close()

    def shutdown(self) -> None:
        """Stop the accept loop; safe to call from any thread, repeatedly."""
        self._accepting = False

    def _bind(self) -> socket.socket:
        host, port = self.config.host, self.config.port
        listener = socket.socket(address_family(host), socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        listener.settimeout(ACCEPT_POLL_INTERVAL)
        try:
            listener.bind((host, port))
            listener.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Cannot bind {host}:{port}: {e}")
            listener.close()
            raise
        return listener

    def _serve(self, on_connection: ConnectionCallback) -> None:
        wrap = partial(
            Connection,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            keep_alive_timeout=self.config.keep_alive_timeout,
            max_request_size=self.config.max_request_size,
        )

        while self._accepting:
            try:
                client, peer = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._accepting:
                    logger.error(f"accept() failed: {e}")
                break

            logger.debug(f"Client connected from {peer[0]}:{peer[1]}")
            on_connection(wrap(socket=client, address=peer[:2]))

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def on_signal(signum, frame):
            logger.info(f"Got {signal.Signals(signum).name}, stopping")
            self.shutdown()

        for signum in (signal.SIGINT, signal.SIGTERM):
            self._saved_handlers[signum] = signal.signal(signum, on_signal)

    def _close(self) -> None:
        while self._saved_handlers:
            signum, handler = self._saved_handlers.popitem()
            signal.signal(signum, handler)

        if self._listener is not None:
            try:
                self._listener.close()
            except OSError as e:
                logger.debug(f"Closing listener: {e}")
            self._listener = None
        self._ready.clear()
        logger.info("Listener closed")
