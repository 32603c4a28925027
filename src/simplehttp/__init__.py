"""
=============================================================================
SIMPLEHTTP
=============================================================================

A small HTTP/1.x file server: serves files and directory listings from a
single server root.

    from simplehttp import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(root_dir="/srv/www", port=8080))
    server.run()

Or from the shell:

    python -m simplehttp --root /srv/www --port 8080

=============================================================================
"""

__version__ = "0.1.0"

from .config import ServerConfig
from .server import HTTPServer
from .handlers import StaticFileHandler, build_response

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "StaticFileHandler",
    "build_response",
    "__version__",
]
