"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the file server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m simplehttp --root ./public                       │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_ROOT=./public python -m simplehttp                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The server root is an explicit setting. Nothing below the CLI reads the
process working directory on its own.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(root_dir="./public", log_level="DEBUG")

    Production:
        ServerConfig(host="0.0.0.0", port=80, root_dir="/srv/www")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to. "0.0.0.0" listens on all interfaces."""

    port: int = 8080
    """The port number to listen on."""

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Size of each socket read in bytes."""

    timeout: Optional[float] = 30.0
    """
    Client socket timeout in seconds.
    None = blocking (a silent client holds its thread forever).
    """

    max_request_size: int = 64 * 1024
    """Largest request accepted, headers included."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """
    Server root. Nothing outside this directory is served.
    Resolved to an absolute path when the handler is created.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        HTTP_HOST       Server host (default: 127.0.0.1)
        HTTP_PORT       Server port (default: 8080)
        HTTP_ROOT       Server root directory (default: .)
        HTTP_TIMEOUT    Client timeout in seconds (default: 30)
        HTTP_LOG_LEVEL  Logging level (default: INFO)
        """
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            root_dir=os.getenv("HTTP_ROOT", "."),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Called at startup (fail fast).

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"Server root is not a directory: {self.root_dir}")
