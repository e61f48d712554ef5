"""
=============================================================================
ASSETSERVER - Static Asset Server with Restart-Seeded ETags
=============================================================================

A read-only, GET-only HTTP/1.1 server for front-end builds: it serves a
directory of files and lets browsers cache them for 30 days, revalidating
against an ETag that changes every time the server restarts.

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /static/app.js                                             │
    │  If-None-Match: "/static/app.js-1718000000"                     │
    │                                                                 │
    │  method gate      GET?                        no  → 405         │
    │  cache validator  etag in If-None-Match?      yes → 304         │
    │  path rewriter    /static/app.js → /app.js                      │
    │  static files     <root>/app.js → 200 / 206 / 403 / 404 / 416   │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    assetserver/
    ├── __main__.py          CLI (python -m assetserver)
    ├── server.py            AssetServer: builds the chain, runs the loop
    ├── config.py            ServerConfig, env parsing, validation
    ├── core/                sockets, connections, worker pool
    ├── http/                request parser, response builder, status, MIME
    ├── middleware/          logging, method gate, cache, rewrite, gzip
    └── handlers/            static file handler with byte ranges

=============================================================================
QUICK START
=============================================================================

    WEB_ROOT=./dist python -m assetserver

    from assetserver import AssetServer, ServerConfig
    AssetServer(ServerConfig(web_root="./dist", app_root="/static")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import AssetServer
from .config import ServerConfig, ConfigError

__all__ = ["AssetServer", "ServerConfig", "ConfigError", "__version__"]
