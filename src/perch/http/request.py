"""Immutable HTTP request.

Frozen metadata with async body access. Middleware that need to change
a request build a modified copy with ``.with_*()`` and pass that
downstream; the original is never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from perch._internal.asgi import Receive
from perch.http.headers import Headers


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()`` or ``.text()``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: str = ""
    path_params: dict[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive = _empty_receive

    # Private: mutable cache for the body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def client_host(self) -> str:
        """The peer address, or ``"UNKNOWN"`` when the server did not supply one."""
        if self.client is None:
            return "UNKNOWN"
        return self.client[0]

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    # -- Copy-on-write transformations --

    def with_header(self, name: str, value: str) -> Request:
        """Return a copy with *name* set to *value*."""
        return replace(self, headers=self.headers.with_header(name, value))

    def with_path(self, path: str) -> Request:
        """Return a copy addressed to a different path."""
        return replace(self, path=path)

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy carrying the variables extracted by the router."""
        return replace(self, path_params=dict(path_params))

    # -- Async body access --

    async def body(self) -> bytes:
        """The full request body, read from the server once.

        Copies made with ``with_*()`` share the cached bytes, so a
        middleware reading the body does not starve the controller.
        """
        cached = self._cache.get("body")
        if cached is None:
            buffer = bytearray()
            more = True
            while more:
                message = await self._receive()
                buffer.extend(message.get("body", b""))
                more = message.get("more_body", False)
            cached = self._cache["body"] = bytes(buffer)
        return cached

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.body()).decode(encoding)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers.from_asgi(scope.get("headers", ())),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
