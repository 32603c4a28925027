"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of a request into an immutable HTTPRequest record.

The file server only ever needs two things from a request:

    GET /docs/readme.txt HTTP/1.1\r\n
        ─────┬──────────  ───┬────
             │               │
        resource path     version (echoed back in the response)

Everything else (headers, client address) is kept for logging.

=============================================================================
WHAT THE PARSER DOES NOT DO
=============================================================================

The parser percent-decodes the path once and drops the query string.
It does NOT normalise ".." segments or reject them: containment is the
job of the path resolver, which compares canonical file-system paths.
Rejecting ".." here would only hide traversal attempts from the check
that actually enforces the server root.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict
from urllib.parse import urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that best describes the problem:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Method other than GET
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class Version(Enum):
    """HTTP protocol versions the server understands."""

    V1_0 = "HTTP/1.0"
    V1_1 = "HTTP/1.1"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> "Version":
        """
        Look up a version token such as "HTTP/1.1".

        Raises:
            HTTPParseError: (505) for any other version.
        """
        for version in cls:
            if version.value == token:
                return version
        raise HTTPParseError(
            f"Unsupported HTTP version: {token}",
            status_code=505,
        )


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request. Immutable once received.

    Attributes:
        method:         Always "GET" for requests produced by RequestParser.
        path:           Resource path without query string, percent-decoded.
                        May be "" or "/" for the server root.
        version:        Protocol version, threaded unchanged into the response.
        headers:        Header name (lowercase) → value.
        client_address: (ip, port) of the client, for logging.
    """

    path: str
    version: Version = Version.V1_1
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def host(self) -> str:
        """Get the Host header value."""
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        """Get the User-Agent header value."""
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive lookup)."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING STEPS
    ==========================================================================

        1. Size check                → 413 if too large
        2. Find \\r\\n\\r\\n           → 400 if missing
        3. Request line              → METHOD SP URI SP VERSION
        4. Method / version checks   → 405 / 505
        5. Headers                   → lowercase names, lenient

    ==========================================================================
    """

    # Methods we recognise; only GET is served.
    KNOWN_METHODS = {
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    }
    SERVED_METHODS = {"GET"}

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 64 * 1024):
        """
        Args:
            max_request_size: Largest request (in bytes) accepted.
                              GET requests carry no body, so 64 KB of
                              headers is generous.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Raw HTTP request bytes from the socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is malformed or unsupported.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        lines = header_section.split("\r\n")

        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            path=path,
            version=version,
            method=method,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, Version]:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            Tuple of (method, path, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version_token = match.groups()

        if method not in self.KNOWN_METHODS:
            raise HTTPParseError(f"Invalid method: {method}")
        if method not in self.SERVED_METHODS:
            raise HTTPParseError(
                f"Method not allowed: {method}",
                status_code=405,
            )

        version = Version.parse(version_token)

        # "/docs/my%20file.txt?x=1" → "/docs/my file.txt". Bytes that are
        # not UTF-8 map back to the same file-name bytes via surrogateescape
        path = unquote(urlparse(uri).path, errors="surrogateescape")

        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" header lines.

        Names are lowercased. Repeated headers are joined with ", ".
        Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] = f"{headers[name]}, {value}"
            else:
                headers[name] = value

        return headers


def parse_request(data: bytes, client_address: tuple[str, int] = ("", 0)) -> HTTPRequest:
    """
    Parse a request with a default RequestParser.

    Example:
        request = parse_request(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
    """
    return RequestParser().parse(data, client_address)
