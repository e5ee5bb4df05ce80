"""Async test client for perch kernels.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from typing import Any

from perch.http.response import Response
from perch.kernel import Kernel


class _Captured:
    """Collects what the kernel sends back for one request."""

    __slots__ = ("body", "headers", "status")

    def __init__(self) -> None:
        self.status = 0
        self.headers: list[tuple[bytes, bytes]] = []
        self.body = bytearray()

    async def __call__(self, message: dict[str, Any]) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.headers = list(message.get("headers", ()))
        elif message["type"] == "http.response.body":
            self.body.extend(message.get("body", b""))

    def to_response(self) -> Response:
        content_type = "text/html; charset=utf-8"
        headers: list[tuple[str, str]] = []
        for raw_name, raw_value in self.headers:
            name, value = raw_name.decode("latin-1"), raw_value.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                headers.append((name, value))
        return Response(
            body=bytes(self.body),
            status=self.status,
            content_type=content_type,
            headers=tuple(headers),
        )


class TestClient:
    """Drive a perch Kernel through its ASGI interface, no sockets involved.

    Entering the client boots the kernel and runs its startup hooks
    (database connect, schema); leaving it runs the shutdown hooks.
    Lifespan itself is not exercised, so process-wide hooks stay untouched.

    Usage::

        async with TestClient(kernel) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __test__ = False  # Tell pytest this is not a test class

    __slots__ = ("client_addr", "kernel")

    def __init__(self, kernel: Kernel, *, client_addr: tuple[str, int] = ("127.0.0.1", 0)) -> None:
        self.kernel = kernel
        self.client_addr = client_addr

    async def __aenter__(self) -> TestClient:
        self.kernel._ensure_frozen()
        await self.kernel.startup()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.kernel.shutdown()

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> Response:
        return await self.request("POST", path, headers=headers, body=body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> Response:
        """Send one request and return the captured response.

        A ``?query`` suffix on *path* becomes the scope's query string.
        """
        pending = [{"type": "http.request", "body": body, "more_body": False}]

        async def receive() -> dict[str, Any]:
            return pending.pop() if pending else {"type": "http.disconnect"}

        captured = _Captured()
        await self.kernel(self._scope(method, path, headers or {}), receive, captured)
        return captured.to_response()

    def _scope(self, method: str, path: str, headers: dict[str, str]) -> dict[str, Any]:
        route_path, _, query = path.partition("?")
        return {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": route_path,
            "raw_path": route_path.encode("latin-1"),
            "query_string": query.encode("latin-1"),
            "root_path": "",
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            ],
            "server": ("testserver", 80),
            "client": self.client_addr,
        }
