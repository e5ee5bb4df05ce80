"""Trailing-slash redirect middleware.

Any path longer than ``/`` that ends in a slash is answered with a
301 to the same path with the trailing slashes stripped. The query
string is preserved.
"""

from perch.http.request import Request
from perch.http.response import Response, redirect
from perch.middleware.protocol import Next


class TrailingSlashMiddleware:
    """Canonicalize ``/foo/`` to ``/foo`` with a permanent redirect."""

    __slots__ = ()

    async def __call__(self, request: Request, next: Next) -> Response:
        path = request.path
        if len(path) > 1 and path.endswith("/"):
            target = path.rstrip("/") or "/"
            if request.query_string:
                target = f"{target}?{request.query_string}"
            return redirect(target, status=301)
        return await next(request)
