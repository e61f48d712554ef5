"""
Networking core: the accept loop, per-client connections and the worker
pool that runs them. Knows nothing about files, ETags or middleware.
"""

from .connection import Connection, ConnectionState, RequestTooLarge
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "SocketServer",
    "ThreadPool",
]
