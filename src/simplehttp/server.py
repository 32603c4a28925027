"""
=============================================================================
HTTP SERVER
=============================================================================

Wires the socket layer to the static file handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        PER-CONNECTION FLOW                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                              │
    │        │                                                             │
    │        └──► new thread ──► read_request()                            │
    │                               │                                      │
    │                               ├──► RequestParser.parse()             │
    │                               ├──► StaticFileHandler.handle()        │
    │                               ├──► send_response()                   │
    │                               └──► close()                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One request per connection, one thread per connection. The handler keeps
no shared state, so threads never coordinate.

When a request cannot be parsed, or building its response fails with an
OSError, the failure is logged and the connection is closed without a
response.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import StaticFileHandler
from .http import RequestParser, HTTPParseError


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    File server: serves config.root_dir over HTTP.

    Usage:
        server = HTTPServer(ServerConfig(root_dir="./public"))
        server.run()  # Blocks until Ctrl+C or shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults serve the current directory.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._handler = StaticFileHandler(self.config.root_dir)

    @property
    def root_dir(self):
        """Canonical server root."""
        return self._handler.root_dir

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self):
        """Start the server (blocking)."""
        self._setup_logging()
        logger.info(
            f"Serving {self.root_dir} on http://{self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight requests finish on their own."""
        self._socket_server.shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("simplehttp").setLevel(level)

    def _handle_connection(self, conn: Connection):
        """Hand each accepted connection to its own thread."""
        worker = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()

    def _process_connection(self, conn: Connection):
        """Read, build and send one response (runs in a worker thread)."""
        with conn:
            try:
                raw_request = conn.read_request()
            except (TimeoutError, ValueError) as e:
                logger.warning(f"[{conn.id}] Failed to read request: {e}")
                return

            if raw_request is None:
                logger.debug(f"[{conn.id}] Client closed before sending a request")
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Bad request ({e.status_code}): {e}")
                return

            try:
                response = self._handler.handle(request)
            except OSError as e:
                logger.error(f"[{conn.id}] Failed to build response for {request.path!r}: {e}")
                return

            logger.info(
                f"[{conn.id}] {conn.client_ip} {request.method} {response.requested_path} "
                f"→ {int(response.status)} ({response.content_length} bytes)"
            )
            conn.send_response(response.to_bytes())
