"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Turns a request for a file-system resource into a complete HTTPResponse.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → RESPONSE PIPELINE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTPRequest.path                                                   │
    │        │                                                             │
    │        ▼                                                             │
    │   1. PATH RESOLVER      resolve_target(root, path)                   │
    │        │                → OUTSIDE_ROOT | FILE | DIRECTORY | MISSING  │
    │        ▼                                                             │
    │   2. BODY GENERATOR     file bytes + sniffed MIME type               │
    │        │                directory listing HTML                       │
    │        │                403 / 404 HTML                               │
    │        ▼                                                             │
    │   3. HEADER FORMATTER   HTTPResponse (see http/response.py)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SECURITY: STAYING INSIDE THE ROOT
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    1. Join onto the root:   /srv/../../etc/passwd
    2. Canonicalize:         /etc/passwd   (symlinks followed, .. collapsed)
    3. Ancestor test:        is /srv an ancestor of /etc/passwd?  No.
    4. Respond with the "403 Forbidden" page.

The ancestor test is done with Path.relative_to() on canonical paths, so a
symlink inside the root that points elsewhere is caught as well.

The 403 page is sent with a "404 NOT FOUND" status line. Clients of this
server rely on that pairing, so it is kept as is.

=============================================================================
ERRORS
=============================================================================

Only the 403/404 pages are "soft" failures. Any OSError raised while
canonicalizing, reading a file or listing a directory propagates out of
handle() untouched: there is no partial listing and no 500 page. The
caller decides what to do with the connection.

=============================================================================
"""

import errno
import html
import logging
import os
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseStatus, AcceptRanges
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)


FORBIDDEN_BODY = b"<html><body><h1>403 Forbidden</h1></body></html>"
NOT_FOUND_BODY = b"<html><body><h1>404 Not Found</h1></body></html>"

HTML_CONTENT_TYPE = "text/html"

LISTING_TEMPLATE = """<html>
<head>
    <title>Directory Listing</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; padding: 0; }}
        h1 {{ color: #333; }}
        ul {{ list-style-type: none; padding: 0; }}
        li {{ margin-bottom: 10px; }}
        a {{ text-decoration: none; color: #007bff; font-size: 16px; }}
        a:hover {{ text-decoration: underline; color: #0056b3; }}
    </style>
</head>
<body>
    <h1>Directory Listing</h1>
    <ul>{entries}</ul>
</body>
</html>
"""

BACK_LINK_TEXT = "Go back up a directory"


class TargetKind(Enum):
    """Classification of a requested path."""

    OUTSIDE_ROOT = "outside_root"
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Where a request path lands on disk.

    Attributes:
        kind: The classification.
        path: Canonical absolute path for FILE and DIRECTORY, None otherwise.
    """

    kind: TargetKind
    path: Optional[Path] = None


def canonicalize(path: Path) -> Path:
    """
    Resolve symlinks and collapse "." / ".." into an absolute path.

    A path that simply does not exist is returned in its normalized form,
    so the caller can classify it as missing. A dangling symlink is an
    error wherever it sits in the path, last component or not.

    Raises:
        OSError: For a dangling symlink, a symlink loop or a path the
                 OS cannot represent (e.g. an embedded NUL byte).
    """
    try:
        resolved = path.resolve()
    except RuntimeError as e:
        # Symlink loops raise RuntimeError before Python 3.13
        raise OSError(errno.ELOOP, str(e), str(path)) from e
    except ValueError as e:
        raise OSError(errno.EINVAL, str(e), str(path)) from e

    if not resolved.exists():
        for component in (path, *path.parents):
            if component.is_symlink() and not component.exists():
                raise FileNotFoundError(
                    errno.ENOENT, "Dangling symbolic link", str(component)
                )

    return resolved


def is_within(root: Path, target: Path) -> bool:
    """
    Check whether canonical `target` is `root` or lies beneath it.

        >>> is_within(Path("/srv"), Path("/srv/docs/a.txt"))
        True
        >>> is_within(Path("/srv"), Path("/srvx/a.txt"))
        False
    """
    try:
        target.relative_to(root)
    except ValueError:
        return False
    return True


def resolve_target(root: Path, resource: str) -> ResolvedTarget:
    """
    Map a request path onto the file system and classify it.

    Args:
        root: Server root. Canonicalized here, so a relative root is fine.
              It must exist.
        resource: Request path, e.g. "", "/", "/docs/readme.txt".
                  Leading slashes are stripped before joining; nothing is
                  decoded or escaped.

    Returns:
        The ResolvedTarget.

    Raises:
        OSError: If canonicalization fails.
    """
    try:
        canonical_root = Path(root).resolve(strict=True)
    except RuntimeError as e:
        raise OSError(errno.ELOOP, str(e), str(root)) from e

    relative = resource.lstrip("/")
    if relative:
        joined = canonical_root / relative
    else:
        joined = canonical_root

    target = canonicalize(joined)

    if not is_within(canonical_root, target):
        return ResolvedTarget(TargetKind.OUTSIDE_ROOT)

    if target.is_file():
        return ResolvedTarget(TargetKind.FILE, target)

    if target.is_dir():
        return ResolvedTarget(TargetKind.DIRECTORY, target)

    return ResolvedTarget(TargetKind.MISSING)


def parent_href(resource: str) -> str:
    """
    Link target for "go back up" from a requested path.

        >>> parent_href("/docs/guides")
        '/docs'
        >>> parent_href("/docs/")
        '/'
    """
    parent = posixpath.dirname(resource.strip("/"))
    return "/" + parent


class StaticFileHandler:
    """
    Builds responses for file-system resources under one server root.

    =========================================================================
    USAGE
    =========================================================================

        handler = StaticFileHandler("/srv/www")
        response = handler.handle(request)
        conn.send_response(response.to_bytes())

    Each call to handle() is independent: there are no caches and no shared
    mutable state, so one handler may serve many threads at once.

    =========================================================================
    """

    def __init__(self, root_dir: Union[str, Path]):
        """
        Args:
            root_dir: Directory beyond which nothing is served.

        Raises:
            FileNotFoundError: If root_dir does not exist.
            NotADirectoryError: If root_dir is not a directory.
        """
        self.root_dir = Path(root_dir).resolve(strict=True)

        if not self.root_dir.is_dir():
            raise NotADirectoryError(
                errno.ENOTDIR, "Server root is not a directory", str(root_dir)
            )

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for a request.

        Raises:
            OSError: On any file-system failure. Never downgraded to 404.
        """
        logger.debug(f"Requested path: {request.path!r}")

        target = resolve_target(self.root_dir, request.path)

        if target.kind is TargetKind.OUTSIDE_ROOT:
            logger.warning(f"Path outside server root: {request.path!r}")
            return self._error(request, FORBIDDEN_BODY)

        if target.kind is TargetKind.MISSING:
            logger.info(f"Not found: {request.path!r}")
            return self._error(request, NOT_FOUND_BODY)

        if target.kind is TargetKind.FILE:
            return self._serve_file(request, target.path)

        return self._serve_directory(request, target.path)

    def _error(self, request: HTTPRequest, body: bytes) -> HTTPResponse:
        return HTTPResponse(
            version=request.version,
            status=ResponseStatus.NOT_FOUND,
            accept_ranges=AcceptRanges.NONE,
            content_type=HTML_CONTENT_TYPE,
            body=body,
            requested_path=request.path,
        )

    def _serve_file(self, request: HTTPRequest, path: Path) -> HTTPResponse:
        """
        Serve a regular file.

        The whole file is read into memory and sent as-is. The MIME type is
        sniffed from the bytes, never taken from the extension.
        """
        logger.info(f"Serving file: {path}")

        content = path.read_bytes()

        return HTTPResponse(
            version=request.version,
            status=ResponseStatus.OK,
            accept_ranges=AcceptRanges.BYTES,
            content_type=get_content_type(content),
            body=content,
            requested_path=request.path,
        )

    def _serve_directory(self, request: HTTPRequest, path: Path) -> HTTPResponse:
        logger.info(f"Serving directory: {path}")

        page = self.render_listing(path, request.path)

        return HTTPResponse(
            version=request.version,
            status=ResponseStatus.OK,
            accept_ranges=AcceptRanges.NONE,
            content_type=HTML_CONTENT_TYPE,
            body=page.encode("utf-8"),
            requested_path=request.path,
        )

    def render_listing(self, directory: Path, resource: str) -> str:
        """
        Render the HTML listing of a directory's immediate children.

        Children are sorted by name. Each links to "/" + its path relative
        to the server root. Below the root, a link to the parent of the
        *requested* path comes first.

        Args:
            directory: Canonical directory inside the root.
            resource: The path as requested, used for the back link.

        Raises:
            OSError: If the directory cannot be read, or an entry cannot be
                     expressed relative to the root.
        """
        entries = []

        if directory != self.root_dir:
            href = html.escape(quote(parent_href(resource), errors="surrogateescape"))
            entries.append(f'<li><a href="{href}">{BACK_LINK_TEXT}</a></li>')

        for entry in sorted(directory.iterdir()):
            try:
                relative = entry.relative_to(self.root_dir)
            except ValueError as e:
                raise OSError(f"Failed to strip prefix from {entry}") from e

            # Undecodable name bytes are percent-encoded in the href and
            # replaced with U+FFFD in the link text
            href = html.escape(quote(os.fsencode("/" + relative.as_posix())))
            name = html.escape(os.fsencode(entry.name).decode("utf-8", "replace"))
            entries.append(f'<li><a href="{href}">{name}</a></li>')

        return LISTING_TEMPLATE.format(entries="".join(entries))


def build_response(
    request: HTTPRequest,
    root_dir: Optional[Union[str, Path]] = None,
) -> HTTPResponse:
    """
    Build one response without keeping a handler around.

    Args:
        request: The parsed request.
        root_dir: Server root. Defaults to the current working directory.

    Example:
        response = build_response(parse_request(raw), root_dir="/srv/www")
    """
    if root_dir is None:
        root_dir = os.getcwd()
    return StaticFileHandler(root_dir).handle(request)
