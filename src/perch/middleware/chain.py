"""Middleware chain composition.

Wraps an ordered list of middleware around a terminal handler and returns
a single ``Next``. Links are closures: the position in the chain lives on
the call stack, so one composed chain can serve any number of concurrent
requests.
"""

from collections.abc import Callable, Sequence
from typing import Any

from perch.errors import ConfigurationError
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Middleware, Next

type Resolver = Callable[[str], Any]


def resolve_middleware(ref: str | Middleware, resolve: Resolver | None) -> Middleware:
    """Turn a middleware id (or instance) into a middleware instance.

    Raises ``ConfigurationError`` when the id is unknown or the resolved
    object is not a middleware. Never skips an entry.
    """
    if not isinstance(ref, str):
        candidate: Any = ref
    elif resolve is None:
        msg = f"Middleware {ref!r} given by id but no resolver is configured."
        raise ConfigurationError(msg)
    else:
        candidate = resolve(ref)

    if not callable(candidate):
        msg = f"Middleware {ref!r} resolved to {type(candidate).__name__}, which is not callable."
        raise ConfigurationError(msg)
    return candidate


def build_chain(
    middleware: Sequence[str | Middleware],
    terminal: Next,
    resolve: Resolver | None = None,
) -> Next:
    """Compose *middleware* around *terminal*, outermost first.

    The returned handler runs middleware in registration order on the way
    in and in reverse order on the way out. Ids are resolved eagerly, so
    a misconfigured chain fails here rather than halfway through a request.
    """
    handler = terminal
    for ref in reversed(middleware):
        mw = resolve_middleware(ref, resolve)
        inner = handler

        async def link(req: Request, _mw: Middleware = mw, _next: Next = inner) -> Response:
            return await _mw(req, _next)

        handler = link
    return handler
