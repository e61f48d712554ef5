"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

Outermost link of the chain: it sees every request, including the ones the
method gate rejects and the ones the cache validator answers with 304, and
writes one access-log line per request.

    TEXT (default), Apache-like:
        10.0.0.7 - - [10/Jun/2024:10:55:36 +0000] "GET /static/app.js" 304 0 0.41ms

    JSON, one object per line for log shippers:
        {"request_id": "a1b2c3d4", "method": "GET", "path": "/static/app.js",
         "status_code": 304, "content_length": 0, "duration_ms": 0.41, ...}

Each response carries the generated id back in X-Request-ID so a client
report can be matched to its log line.

Lines go to the "assetserver.access" logger, so access logs can be routed
or silenced separately from the server's own messages:

    logging.getLogger("assetserver.access").setLevel(logging.WARNING)

=============================================================================
"""

import time
import json
import uuid
import logging
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("assetserver.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """One access-log record."""

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Times each request and emits an access-log line.

    Args:
        log_format: "text" or "json".
        include_request_id: Add X-Request-ID to every response.
        log_level: Level the access lines are logged at.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
    ):
        if log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] {request.method} {request.path} failed: "
                f"{type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if logger.isEnabledFor(self.log_level):
            entry = self._build_entry(request, response, request_id, duration_ms)
            if self.log_format == "json":
                logger.log(self.log_level, json.dumps(entry.to_dict()))
            else:
                logger.log(self.log_level, entry.to_text())

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        return response

    @staticmethod
    def _build_entry(
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        duration_ms: float,
    ) -> RequestLog:
        return RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=request.query,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body) if response.status.allows_body else 0,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )
