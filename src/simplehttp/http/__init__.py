"""
=============================================================================
HTTP MODULE
=============================================================================

Request parsing, content sniffing and response formatting.

    REQUEST  (request.py)     b"GET /docs HTTP/1.1\r\n..."  →  HTTPRequest
    SNIFFING (mime_types.py)  b"\x89PNG..."                  →  "image/png"
    RESPONSE (response.py)    HTTPResponse                   →  wire bytes

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, Version, parse_request
from .response import HTTPResponse, ResponseStatus, AcceptRanges, format_head
from .mime_types import sniff_mime_type, get_content_type, DEFAULT_MIME_TYPE

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "Version",
    "parse_request",
    # Response formatting
    "HTTPResponse",
    "ResponseStatus",
    "AcceptRanges",
    "format_head",
    # MIME types
    "sniff_mime_type",
    "get_content_type",
    "DEFAULT_MIME_TYPE",
]
