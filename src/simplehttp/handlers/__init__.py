"""
Request handlers.

StaticFileHandler maps request paths onto a server root and returns file
contents, directory listings or 403/404 pages.

    from simplehttp.handlers import StaticFileHandler

    handler = StaticFileHandler("/srv/www")
    response = handler.handle(request)
"""

from .static import (
    StaticFileHandler,
    ResolvedTarget,
    TargetKind,
    resolve_target,
    build_response,
)

__all__ = [
    "StaticFileHandler",
    "ResolvedTarget",
    "TargetKind",
    "resolve_target",
    "build_response",
]
