"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from assetserver import AssetServer, ServerConfig
from assetserver.http import HTTPRequest


SEED = "1700000000"

INDEX_HTML = b"<!DOCTYPE html><html><body>home</body></html>"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4
APP_JS = b"console.log('asset server');\n" * 200


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """
    A small web root:

        index.html
        img.png            1032 bytes of binary
        app.js             large, compressible
        docs/index.html
        empty/             directory without an index
    """
    root = tmp_path / "app"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "img.png").write_bytes(PNG_BYTES)
    (root / "app.js").write_bytes(APP_JS)
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_bytes(b"<h1>docs</h1>")
    (root / "empty").mkdir()
    return root


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """Factory for parsed requests: make_request("GET", "/x", {"range": "bytes=0-1"})."""

    def factory(method: str = "GET", path: str = "/", headers: dict = None) -> HTTPRequest:
        return HTTPRequest(
            method=method,
            path=path,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            client_address=("127.0.0.1", 50000),
        )

    return factory


@pytest.fixture
def config(web_root: Path) -> ServerConfig:
    """Test configuration serving the temporary web root."""
    return ServerConfig(
        host="127.0.0.1",
        web_root=str(web_root),
        workers=2,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def server(config: ServerConfig) -> AssetServer:
    """Socket-free server with a pinned ETag seed."""
    return AssetServer(config, etag_seed=SEED)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class LiveServer:
    """Runs an AssetServer in a background thread."""

    def __init__(self, server: AssetServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.config.port

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def live_server_factory(web_root: Path, free_port: int) -> Generator[Callable[..., LiveServer], None, None]:
    """Start live servers with config overrides; all are stopped afterwards."""
    started = []

    def factory(**overrides) -> LiveServer:
        settings = dict(
            host="127.0.0.1",
            port=free_port,
            web_root=str(web_root),
            workers=2,
            timeout=5.0,
            keep_alive_timeout=1.0,
            log_level="WARNING",
        )
        settings.update(overrides)
        live = LiveServer(AssetServer(ServerConfig(**settings), etag_seed=SEED))
        live.start()
        started.append(live)
        return live

    yield factory

    for live in started:
        live.stop()


@pytest.fixture
def live_server(live_server_factory) -> LiveServer:
    return live_server_factory()
