"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simplehttp import HTTPServer, ServerConfig
from simplehttp.http import HTTPRequest, Version


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/readme.txt?download=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def server_root(tmp_path: Path) -> Path:
    """
    A populated server root:

        root/
            index.txt
            logo.png
            blob.bin
            docs/
                readme.txt        (42 bytes)
                guides/
                    intro.txt
            empty/
    """
    root = tmp_path / "root"
    root.mkdir()

    (root / "index.txt").write_text("hello from the root\n")
    (root / "logo.png").write_bytes(PNG_SIGNATURE + bytes(24))
    (root / "blob.bin").write_bytes(b"\x00\x01\x02\x03\xfe\xff")

    docs = root / "docs"
    docs.mkdir()
    (docs / "readme.txt").write_bytes(b"The quick brown fox jumps over a lazy dog.")

    guides = docs / "guides"
    guides.mkdir()
    (guides / "intro.txt").write_text("intro\n")

    (root / "empty").mkdir()

    return root


@pytest.fixture
def make_request():
    """Factory for HTTPRequest records."""
    def _make(path: str, version: Version = Version.V1_1) -> HTTPRequest:
        return HTTPRequest(path=path, version=version)
    return _make


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: threading.Thread = None

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        # Wait for server to be ready
        for _ in range(50):  # 5 seconds max
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(('127.0.0.1', self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(('127.0.0.1', self.port), timeout=5.0) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(free_port: int, server_root: Path) -> Generator[TestServer, None, None]:
    """Run an HTTPServer over server_root."""
    server = HTTPServer(ServerConfig(
        host="127.0.0.1",
        port=free_port,
        root_dir=str(server_root),
        timeout=5.0,
        log_level="WARNING",
    ))

    test_srv = TestServer(server, free_port)
    test_srv.start()

    yield test_srv

    test_srv.stop()
