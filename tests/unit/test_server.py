"""
End-to-end tests: real sockets against a background HTTPServer.
"""

import socket
from pathlib import Path

import pytest

from simplehttp import HTTPServer, ServerConfig


class TestHTTPServer:
    """Tests for HTTPServer over TCP."""

    def test_serves_file(self, test_server, server_root: Path):
        """Test a full GET round trip for a file."""
        content = (server_root / "docs" / "readme.txt").read_bytes()

        raw = test_server.request(b"GET /docs/readme.txt HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert raw == (
            b"HTTP/1.1 200 OK\n"
            b"accept-ranges: bytes\n"
            b"Content-Type: text/plain\n"
            b"Content-Length: 42\r\n\r\n"
            + content
        )

    def test_serves_binary_unchanged(self, test_server, server_root: Path):
        """Test that binary bodies arrive byte-for-byte."""
        raw = test_server.request(b"GET /logo.png HTTP/1.1\r\n\r\n")

        head, _, body = raw.partition(b"\r\n\r\n")
        assert b"Content-Type: image/png" in head
        assert body == (server_root / "logo.png").read_bytes()

    def test_directory_listing(self, test_server):
        """Test a listing round trip."""
        raw = test_server.request(b"GET / HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 200 OK\naccept-ranges: none\nContent-Type: text/html\n")
        assert b'<a href="/docs">docs</a>' in raw

    def test_encoded_path(self, test_server, server_root: Path):
        """Test that percent-encoded names are found."""
        (server_root / "my file.txt").write_text("spaced\n")

        raw = test_server.request(b"GET /my%20file.txt HTTP/1.1\r\n\r\n")

        assert raw.endswith(b"\r\n\r\nspaced\n")

    def test_not_found(self, test_server):
        """Test the 404 page over the wire."""
        raw = test_server.request(b"GET /nope HTTP/1.0\r\n\r\n")

        assert raw.startswith(b"HTTP/1.0 404 NOT FOUND\n")
        assert raw.endswith(b"<html><body><h1>404 Not Found</h1></body></html>")

    def test_outside_root(self, test_server):
        """Test that traversal attempts get the 403 page."""
        raw = test_server.request(b"GET /../../etc/passwd HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 404 NOT FOUND\n")
        assert raw.endswith(b"<html><body><h1>403 Forbidden</h1></body></html>")

    def test_bad_request_closes_without_response(self, test_server):
        """Test that unparseable requests are dropped."""
        assert test_server.request(b"NONSENSE\r\n\r\n") == b""

    def test_post_closes_without_response(self, test_server):
        """Test that methods other than GET are dropped."""
        assert test_server.request(b"POST / HTTP/1.1\r\nContent-Length: 0\r\n\r\n") == b""

    def test_build_failure_closes_without_response(self, test_server, server_root: Path):
        """Test that an I/O failure while building drops the connection."""
        (server_root / "dangling").symlink_to(server_root / "gone")

        assert test_server.request(b"GET /dangling HTTP/1.1\r\n\r\n") == b""

    def test_concurrent_requests(self, test_server):
        """Test several clients at once."""
        sockets = []
        try:
            for _ in range(5):
                s = socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0)
                sockets.append(s)

            for s in sockets:
                s.sendall(b"GET /index.txt HTTP/1.1\r\n\r\n")

            for s in sockets:
                data = b""
                while True:
                    chunk = s.recv(4096)
                    if not chunk:
                        break
                    data += chunk
                assert data.endswith(b"hello from the root\n")
        finally:
            for s in sockets:
                s.close()


class TestServerSetup:
    """Tests for server construction."""

    def test_invalid_config_rejected(self, tmp_path: Path):
        """Test that configuration is validated up front."""
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(root_dir=str(tmp_path / "missing")))

    def test_root_dir_is_canonical(self, server_root: Path):
        """Test that the server exposes the resolved root."""
        server = HTTPServer(ServerConfig(root_dir=str(server_root / "docs" / "..")))

        assert server.root_dir == server_root.resolve()
