"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings live in one frozen dataclass, read once at startup. There is
no reload: changing anything means restarting, which also rolls the ETag
seed.

    ┌──────────────────────────────────────────────────────────────────┐
    │  Priority (highest first)                                        │
    │                                                                  │
    │  1. command-line flags      python -m assetserver --port 9000    │
    │  2. environment variables   PORT=9000 python -m assetserver      │
    │  3. defaults below                                               │
    └──────────────────────────────────────────────────────────────────┘

    Variable     Field        Default
    ─────────    ──────────   ─────────
    HOST         host         0.0.0.0
    PORT         port         8080
    WEB_ROOT     web_root     ./app
    APP_ROOT     app_root     ""        (prefix stripped before lookup)
    NO_CACHE     no_cache     false     (disables ETag / 304 handling)
    COMPRESS     compress     true
    WORKERS      workers      8
    LOG_LEVEL    log_level    INFO
    LOG_FORMAT   log_format   text      (or json)

Boolean variables accept 1 t T TRUE true True / 0 f F FALSE false False.
Anything else is ignored and the default is kept. Numbers are strict: a
PORT of "http" is a startup error, not a silent fallback.

Invalid configuration never reaches the accept loop: validate() raises
ConfigError and the process exits.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


class ConfigError(ValueError):
    """Configuration that the server refuses to start with."""


_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}

LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_bool(value: Optional[str], default: bool) -> bool:
    """
    Parse a boolean environment value.

        >>> parse_bool("TRUE", False)
        True
        >>> parse_bool("yes", False)
        False
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "")
    if raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class ServerConfig:
    """
    Settings for one AssetServer.

    Example:
        config = ServerConfig(web_root="/srv/app", app_root="/static")
        config.validate()
    """

    # Network
    host: str = "0.0.0.0"
    port: int = 8080
    backlog: int = 128
    buffer_size: int = 8192
    timeout: float = 30.0               # Socket read timeout per connection
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 64 * 1024   # GET only; headers are all we read

    # Content
    web_root: str = "./app"
    app_root: str = ""
    index_file: str = "index.html"
    no_cache: bool = False
    cache_max_age: int = 2592000        # 30 days
    compress: bool = True

    # Threading
    workers: int = 8
    queue_size: int = 256

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests).

        Raises:
            ConfigError: If PORT or WORKERS is not an integer.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            host=env.get("HOST") or defaults.host,
            port=_parse_int(env, "PORT", defaults.port),
            web_root=env.get("WEB_ROOT") or defaults.web_root,
            app_root=env.get("APP_ROOT", defaults.app_root),
            no_cache=parse_bool(env.get("NO_CACHE"), defaults.no_cache),
            compress=parse_bool(env.get("COMPRESS"), defaults.compress),
            workers=_parse_int(env, "WORKERS", defaults.workers),
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
            log_format=(env.get("LOG_FORMAT") or defaults.log_format).lower(),
        )

    @property
    def cache_enabled(self) -> bool:
        return not self.no_cache

    def validate(self) -> None:
        """
        Check every setting; raise ConfigError on the first bad one.

        The web root is checked here rather than at first request so a
        typo in WEB_ROOT stops the deploy instead of serving 404s.
        """
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.workers < 1:
            raise ConfigError("workers must be >= 1")

        if self.queue_size < 1:
            raise ConfigError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.timeout <= 0 or self.keep_alive_timeout <= 0:
            raise ConfigError("timeouts must be > 0")

        if self.cache_max_age < 0:
            raise ConfigError("cache_max_age must be >= 0")

        if self.log_format not in LOG_FORMATS:
            raise ConfigError(
                f"Unknown log format {self.log_format!r}; use one of {', '.join(LOG_FORMATS)}"
            )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level {self.log_level!r}")

        if not self.index_file or "/" in self.index_file:
            raise ConfigError(f"Invalid index file name: {self.index_file!r}")

        if not os.path.exists(self.web_root):
            raise ConfigError(f"Web root does not exist: {self.web_root}")
        if not os.path.isdir(self.web_root):
            raise ConfigError(f"Web root is not a directory: {self.web_root}")
        if not os.access(self.web_root, os.R_OK | os.X_OK):
            raise ConfigError(f"Web root is not readable: {self.web_root}")
