"""
=============================================================================
HTTP RESPONSE RECORD AND HEADER FORMATTER
=============================================================================

Holds the outcome of one request and serializes it to wire format.

=============================================================================
WIRE LAYOUT
=============================================================================

Every response, whatever it carries, is laid out the same way:

    HTTP/1.1 200 OK\n                     ← status line
    accept-ranges: bytes\n                ← accept-ranges indicator
    Content-Type: image/png\n
    Content-Length: 1234\r\n\r\n          ← only place CRLF is used
    <body bytes>

The LF / CRLF mix is deliberate compatibility with existing clients of
this server and must not be "fixed" here. Note also that the status line
always reads "404 NOT FOUND" for not-found responses, even when the body
is the 403 page.

=============================================================================
CONTENT-LENGTH
=============================================================================

HTTPResponse computes content_length from the finalized body itself.
There is no way to construct a response whose header disagrees with the
bytes that follow it.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from .request import Version


class ResponseStatus(IntEnum):
    """
    Status codes this server emits.

        >>> ResponseStatus.OK == 200
        True
        >>> str(ResponseStatus.NOT_FOUND)
        '404 NOT FOUND'
    """

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase as written on the status line."""
        return _STATUS_PHRASES[self]

    def __str__(self) -> str:
        return f"{self.value} {self.phrase}"


_STATUS_PHRASES = {
    ResponseStatus.OK: "OK",
    ResponseStatus.NOT_FOUND: "NOT FOUND",
}


class AcceptRanges(Enum):
    """Accept-ranges indicator. Only files advertise byte ranges."""

    BYTES = "bytes"
    NONE = "none"

    def __str__(self) -> str:
        return f"accept-ranges: {self.value}"


def format_head(
    version: Version,
    status: ResponseStatus,
    accept_ranges: AcceptRanges,
    content_type: str,
    content_length: int,
) -> str:
    """
    Format the header block, terminator included.

    Example:
        >>> format_head(Version.V1_1, ResponseStatus.OK, AcceptRanges.NONE,
        ...             "text/html", 5)
        'HTTP/1.1 200 OK\\naccept-ranges: none\\nContent-Type: text/html\\nContent-Length: 5\\r\\n\\r\\n'
    """
    return (
        f"{version!s} {status!s}\n"
        f"{accept_ranges!s}\n"
        f"Content-Type: {content_type}\n"
        f"Content-Length: {content_length}\r\n\r\n"
    )


@dataclass(frozen=True)
class HTTPResponse:
    """
    A fully formatted response. Immutable after construction.

    Attributes:
        version:        Protocol version echoed from the request.
        status:         OK or NOT_FOUND.
        accept_ranges:  BYTES for files, NONE otherwise.
        content_type:   MIME type written to the Content-Type header.
        body:           Payload bytes appended after the header block.
        requested_path: The request's path, for the caller's logging.
        content_length: len(body), derived.
        payload:        Header block + body, ready for socket.sendall().
    """

    version: Version
    status: ResponseStatus
    accept_ranges: AcceptRanges
    content_type: str
    body: bytes
    requested_path: str = ""
    content_length: int = field(init=False)
    payload: bytes = field(init=False, repr=False)

    def __post_init__(self):
        # frozen=True, so derived fields are set through object.__setattr__
        content_length = len(self.body)
        head = format_head(
            self.version,
            self.status,
            self.accept_ranges,
            self.content_type,
            content_length,
        )
        object.__setattr__(self, "content_length", content_length)
        object.__setattr__(self, "payload", head.encode("utf-8") + self.body)

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 200 OK" """
        return f"{self.version!s} {self.status!s}"

    @property
    def head(self) -> bytes:
        """The header block including the blank-line terminator."""
        return self.payload[:len(self.payload) - self.content_length]

    @property
    def text(self) -> str:
        """
        The payload as text, for logs and debugging.

        Bytes that are not valid UTF-8 are replaced, so this view is lossy
        for binary files. Use to_bytes() for anything sent to a client.
        """
        return self.payload.decode("utf-8", errors="replace")

    def to_bytes(self) -> bytes:
        """Complete HTTP response as bytes ready for socket.sendall()."""
        return self.payload
