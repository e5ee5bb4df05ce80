"""Middleware protocol and the Next continuation type.

A middleware receives the request and the rest of the pipeline::

    async def mw(request: Request, next: Next) -> Response: ...

It either awaits ``next(request)`` (optionally with a ``.with_*()`` copy
of the request, optionally post-processing the response) or returns its
own ``Response``, in which case nothing downstream runs.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from perch.http.request import Request
from perch.http.response import Response

# The rest of the pipeline, as seen from one middleware
type Next = Callable[[Request], Awaitable[Response]]


@runtime_checkable
class Middleware(Protocol):
    """Anything awaitable-callable as ``(request, next) -> Response``.

    Plain functions and objects with ``__call__`` both qualify::

        async def powered_by(request: Request, next: Next) -> Response:
            return (await next(request)).with_header("X-Powered-By", "perch")

        class DenyAll:
            async def __call__(self, request: Request, next: Next) -> Response:
                return Response("Forbidden", status=403)
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
