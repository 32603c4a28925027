"""
=============================================================================
MIME TYPE SNIFFING
=============================================================================

Detects a file's MIME type from its CONTENT, not its name.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION vs. MAGIC BYTES                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   photo.txt  containing  89 50 4E 47 0D 0A 1A 0A ...                │
    │                          ─────────┬─────────                         │
    │                                   └── PNG signature                  │
    │                                                                      │
    │   By extension:   text/plain   (wrong)                               │
    │   By sniffing:    image/png    (what the bytes really are)           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Binary signatures come from the `filetype` package, which only looks at
the first few kilobytes of the buffer. Text has no signature, so content
that decodes cleanly as UTF-8 and carries no binary control bytes is
reported as text/plain. Everything else falls back to
application/octet-stream.

=============================================================================
"""

from typing import Optional

import filetype


DEFAULT_MIME_TYPE = "application/octet-stream"
TEXT_MIME_TYPE = "text/plain"

# How much of the buffer the text heuristic inspects.
TEXT_SNIFF_LENGTH = 8192

# Control bytes that may legitimately appear in text files.
_TEXT_CONTROL_BYTES = {0x08, 0x09, 0x0A, 0x0C, 0x0D, 0x1B}


def _looks_like_text(content: bytes) -> bool:
    """
    Check whether a buffer is plausibly text.

    Only the leading TEXT_SNIFF_LENGTH bytes are examined. A multi-byte
    UTF-8 sequence cut at that boundary is tolerated.
    """
    sample = content[:TEXT_SNIFF_LENGTH]
    if not sample:
        return False

    if any(byte < 0x20 and byte not in _TEXT_CONTROL_BYTES for byte in sample):
        return False

    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as e:
        # Truncated trailing character at the cut point is fine
        return (
            len(content) > TEXT_SNIFF_LENGTH
            and e.reason == "unexpected end of data"
            and e.start >= len(sample) - 3
        )
    return True


def sniff_mime_type(content: bytes) -> Optional[str]:
    """
    Infer a MIME type from magic bytes.

    Args:
        content: File content (only the beginning is inspected).

    Returns:
        The MIME type, or None when nothing matches.

    Examples:
        >>> sniff_mime_type(b"\\x89PNG\\r\\n\\x1a\\n" + bytes(16))
        'image/png'

        >>> sniff_mime_type(b"hello world\\n")
        'text/plain'

        >>> sniff_mime_type(b"\\x00\\x01\\x02") is None
        True
    """
    kind = filetype.guess(content)
    if kind is not None:
        return kind.mime

    if _looks_like_text(content):
        return TEXT_MIME_TYPE

    return None


def get_content_type(content: bytes, default: str = DEFAULT_MIME_TYPE) -> str:
    """
    Get the Content-Type value for a file's content.

    Args:
        content: File content.
        default: Used when sniffing yields nothing.
    """
    return sniff_mime_type(content) or default
