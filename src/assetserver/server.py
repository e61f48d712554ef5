"""
=============================================================================
ASSET SERVER
=============================================================================

Ties the pieces together:

    SocketServer ──accept──► ThreadPool ──worker──► _process_connection
                                                         │
                                      read → parse → handler → send
                                                         │
                        ┌────────────────────────────────┘
                        ▼
    LoggingMiddleware → MethodGate → CacheValidator → PathRewrite
                                                          → Compression
                                                          → StaticFileHandler

The chain is built once in __init__ from the configuration and never
changes afterwards:

    no_cache=True       CacheValidator is left out (no ETag, no 304)
    app_root "" or "/"  PathRewrite is left out
    compress=False      Compression is left out

The ETag seed is fixed for the lifetime of the instance. Pass one in to
pin it (tests, multi-node deploys sharing a release id); otherwise the
start time in Unix seconds is used.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool, RequestTooLarge
from .handlers import StaticFileHandler
from .http import (
    HTTPRequest, HTTPResponse, HTTPStatus,
    RequestParser, HTTPParseError,
    error_response, internal_error,
)
from .http.response import SERVER_NAME
from .middleware import (
    MiddlewarePipeline, NextHandler,
    LoggingMiddleware,
    MethodGateMiddleware,
    CacheValidatorMiddleware, new_etag_seed,
    PathRewriteMiddleware, create_path_rewriter,
    CompressionMiddleware,
)


logger = logging.getLogger(__name__)


class AssetServer:
    """
    GET-only static asset server.

        config = ServerConfig.from_env()
        server = AssetServer(config)
        server.run()                   # blocks until SIGINT / SIGTERM

    handle() runs a single request through the chain without any sockets:

        response = AssetServer(config, etag_seed="42").handle(request)

    Raises:
        ConfigError: From __init__, if the configuration is invalid.
    """

    def __init__(self, config: Optional[ServerConfig] = None, etag_seed: Optional[str] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.etag_seed = etag_seed or new_etag_seed()

        self._static = StaticFileHandler(self.config.web_root, index_file=self.config.index_file)
        self._pipeline = self._build_pipeline()
        self._handler: NextHandler = self._pipeline.wrap(self._static.handle)

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            queue_size=self.config.queue_size,
        )
        self._running = False

    def _build_pipeline(self) -> MiddlewarePipeline:
        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware(log_format=self.config.log_format))
        pipeline.add(MethodGateMiddleware())

        if self.config.cache_enabled:
            pipeline.add(CacheValidatorMiddleware(self.etag_seed, max_age=self.config.cache_max_age))

        rewriter = create_path_rewriter(self.config.app_root)
        if rewriter is not None:
            pipeline.add(PathRewriteMiddleware(rewriter))

        if self.config.compress:
            pipeline.add(CompressionMiddleware())

        return pipeline

    @property
    def pipeline(self) -> MiddlewarePipeline:
        return self._pipeline

    @property
    def is_running(self) -> bool:
        return self._running

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through the chain.

        Anything the chain raises becomes a 500; the traceback goes to the
        log, never to the client.
        """
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.method} {request.path}: {e}")
            return internal_error()

    def run(self) -> None:
        """Serve until shutdown. Raises OSError if the port cannot be bound."""
        self._setup_logging()
        self._running = True
        self._thread_pool.start()

        logger.info(
            f"Serving {self.config.web_root} on {self.config.host}:{self.config.port} "
            f"(prefix={self.config.app_root or '-'}, "
            f"cache={'off' if self.config.no_cache else 'on'}, "
            f"etag seed={self.etag_seed})"
        )
        logger.debug(f"Pipeline: {' -> '.join(self._pipeline.names)}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def stop(self) -> None:
        """Ask a running server to shut down; run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self) -> None:
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("assetserver").setLevel(level)

    def _shutdown(self) -> None:
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection) -> None:
        """Called from the accept loop; hands the connection to a worker."""
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection) -> None:
        """Keep-alive loop for one client; runs in a worker thread."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        logger.debug(f"[{conn.id}] Bad request: {e}")
                        self._send_error(conn, HTTPStatus(e.status_code), str(e))
                        break

                    response = self.handle(request)
                    keep_alive = self.config.keep_alive and request.is_keep_alive

                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if not conn.send_response(response.to_bytes(SERVER_NAME)):
                        break
                    if not keep_alive or response.headers.get("Connection") == "close":
                        break
                    conn.set_keep_alive()

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str) -> None:
        conn.send_response(error_response(status, message).to_bytes(SERVER_NAME))
