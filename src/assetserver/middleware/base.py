"""
=============================================================================
MIDDLEWARE CHAIN
=============================================================================

Every request passes through an ordered chain of middleware before it
reaches the static file handler. Each link can:

    - answer on its own and stop the chain (method gate → 405,
      cache validator → 304)
    - hand the request, possibly replaced, to the next link
      (path rewriter)
    - adjust the response on the way back out (cache headers,
      compression, access log)

    Request ───────────────────────────────────────────────────►

    ┌─────────┐   ┌─────────┐   ┌─────────┐   ┌─────────┐   ┌─────────┐
    │ Access  │──►│ Method  │──►│  Cache  │──►│  Path   │──►│  Static │
    │   log   │   │  gate   │   │validator│   │ rewrite │   │  files  │
    └─────────┘   └────┬────┘   └────┬────┘   └─────────┘   └─────────┘
                       │             │
                     405           304
    ◄─────────────────────────────────────────────────── Response

The order is fixed when the pipeline is assembled and never changes
while the server runs; a request never visits a link twice.

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The rest of the chain, as seen from inside one middleware.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    One link in the chain.

    Subclasses implement __call__ and either return a response directly
    (short-circuit) or return whatever next(request) produces:

        class AddHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Served-By", "assets-1")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request, calling next(request) to continue."""

    @property
    def name(self) -> str:
        """Name used in debug logs."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware wrapped around a final handler.

    The first middleware added is the outermost one:

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware()).add(MethodGateMiddleware())
        handler = pipeline.wrap(static_files.handle)

        handler(request)   # Logging → MethodGate → static_files.handle
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around handler.

        Wrapping runs back to front so that, for [A, B, C], the result
        is A(B(C(handler))).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def bound(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return bound

    @property
    def names(self) -> List[str]:
        """Middleware names in execution order."""
        return [mw.name for mw in self._middleware]

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)
