"""Tests for perch.kernel — global phase, route phase, error boundary."""

import logging
import sys

import anyio
import pytest

from perch.config import AppConfig
from perch.container import Container
from perch.errors import ConfigurationError, FatalError, HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.kernel import Kernel, split_handler_id
from perch.middleware.protocol import Next
from perch.routing.route import Route
from perch.server.errors import ErrorInterceptor
from perch.testing import TestClient


class _Renderer:
    def render(self, name: str, context: dict | None = None) -> str:
        ctx = context or {}
        return f"[{name}] {ctx['status_code']} {ctx['error_message']}"


class _Pages:
    def __init__(self) -> None:
        self.seen: list[dict[str, str]] = []

    def index(self) -> str:
        return "<p>index</p>"

    async def show(self, slug: str) -> str:
        self.seen.append({"slug": slug})
        return f"<p>{slug}</p>"

    def missing(self) -> str:
        raise NotFound("no such page")

    def teapot(self) -> str:
        raise HTTPError(status=418, detail="I'm a teapot")

    def crash(self) -> str:
        raise ValueError("internal detail")

    def fatal(self) -> str:
        raise FatalError("state corrupted")


def _tagger(tag: str, log: list[str]):
    async def mw(request: Request, next: Next) -> Response:
        log.append(tag)
        return await next(request)

    return mw


ROUTES = [
    Route("GET", "/", "pages.index"),
    Route("GET", "/pages/{slug}", "pages.show", middleware=("tag_route",)),
    Route("GET", "/missing", "pages.missing"),
    Route("GET", "/teapot", "pages.teapot"),
    Route("GET", "/crash", "pages.crash"),
    Route("GET", "/fatal", "pages.fatal"),
    Route("POST", "/form", "pages.index"),
    Route("PUT", "/form", "pages.index"),
]


def _kernel(
    *,
    debug: bool = False,
    middleware: tuple[str, ...] = ("tag_global",),
    routes: list[Route] | None = None,
    terminated: list[bool] | None = None,
) -> tuple[Kernel, list[str]]:
    log: list[str] = []
    container = Container()
    container.set("config", AppConfig(debug=debug, middleware=middleware))
    container.set("renderer", _Renderer())
    container.register("pages", lambda: _Pages())
    container.set("tag_global", _tagger("global", log))
    container.set("tag_route", _tagger("route", log))

    sink = terminated if terminated is not None else []
    interceptor = ErrorInterceptor(
        container.get("renderer"), debug=debug, terminate=lambda: sink.append(True)
    )
    kernel = Kernel(container, ROUTES if routes is None else routes, interceptor=interceptor)
    return kernel, log


class TestSplitHandlerId:
    def test_simple(self) -> None:
        assert split_handler_id("home.index") == ("home", "index")

    def test_dotted_controller(self) -> None:
        assert split_handler_id("admin.users.list") == ("admin.users", "list")

    @pytest.mark.parametrize("handler", ["index", ".index", "home."])
    def test_malformed(self, handler: str) -> None:
        with pytest.raises(ConfigurationError):
            split_handler_id(handler)


class TestRoutePhase:
    async def test_controller_body_wrapped_in_200(self) -> None:
        kernel, _ = _kernel()
        async with TestClient(kernel) as client:
            response = await client.get("/")
        assert response.status == 200
        assert response.text == "<p>index</p>"
        assert response.content_type.startswith("text/html")

    async def test_path_params_passed_as_kwargs(self) -> None:
        kernel, _ = _kernel()
        async with TestClient(kernel) as client:
            response = await client.get("/pages/intro")
        assert response.text == "<p>intro</p>"
        assert kernel.container.get("pages").seen == [{"slug": "intro"}]

    async def test_global_then_route_middleware(self) -> None:
        kernel, log = _kernel()
        async with TestClient(kernel) as client:
            await client.get("/pages/intro")
            await client.get("/")
        assert log == ["global", "route", "global"]

    async def test_unmatched_path_is_404(self) -> None:
        kernel, log = _kernel()
        async with TestClient(kernel) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert response.text == "[error.html] 404 Page Not Found"
        assert log == ["global"]

    async def test_wrong_method_is_405_with_allow(self) -> None:
        kernel, _ = _kernel()
        async with TestClient(kernel) as client:
            response = await client.request("DELETE", "/form")
        assert response.status == 405
        assert response.header("Allow") == "POST, PUT"
        assert "405" in response.text

    async def test_405_passes_back_through_global_middleware(self) -> None:
        seen: list[int] = []

        async def observe(request: Request, next: Next) -> Response:
            response = await next(request)
            seen.append(response.status)
            return response

        kernel, _ = _kernel(middleware=("observe",))
        kernel.container.set("observe", observe)
        async with TestClient(kernel) as client:
            await client.get("/form")
        assert seen == [405]


class TestConcurrency:
    async def test_interleaved_requests_keep_their_own_state(self) -> None:
        kernel, _ = _kernel(middleware=("yielding",))
        events: list[str] = []

        async def yielding(request: Request, next: Next) -> Response:
            events.append(f"in {request.path}")
            await anyio.sleep(0)
            response = await next(request)
            await anyio.sleep(0)
            events.append(f"out {request.path}")
            return response.with_header("X-Path", request.path)

        kernel.container.set("yielding", yielding)
        paths = ["/pages/a", "/pages/b", "/pages/c"]
        responses: dict[str, Response] = {}

        async with TestClient(kernel) as client:

            async def fetch(path: str) -> None:
                responses[path] = await client.get(path)

            async with anyio.create_task_group() as tg:
                for path in paths:
                    tg.start_soon(fetch, path)

        for path in paths:
            slug = path.rsplit("/", 1)[1]
            assert responses[path].status == 200
            assert responses[path].text == f"<p>{slug}</p>"
            assert responses[path].header("X-Path") == path
            assert events.index(f"in {path}") < events.index(f"out {path}")
        # All requests were inside the chain at the same time
        assert sorted(events[:3]) == [f"in {p}" for p in paths]
        assert sorted(kernel.container.get("pages").seen, key=lambda s: s["slug"]) == [
            {"slug": "a"},
            {"slug": "b"},
            {"slug": "c"},
        ]


class TestErrorBoundary:
    async def test_controller_not_found(self) -> None:
        kernel, _ = _kernel()
        async with TestClient(kernel) as client:
            response = await client.get("/missing")
        assert response.status == 404
        assert "no such page" in response.text

    async def test_http_error_status_kept(self) -> None:
        kernel, _ = _kernel()
        async with TestClient(kernel) as client:
            response = await client.get("/teapot")
        assert response.status == 418

    async def test_debug_off_hides_message(self) -> None:
        kernel, _ = _kernel(debug=False)
        async with TestClient(kernel) as client:
            response = await client.get("/crash")
        assert response.status == 500
        assert "internal detail" not in response.text
        assert "An unexpected error occurred." in response.text

    async def test_debug_on_shows_message(self) -> None:
        kernel, _ = _kernel(debug=True)
        async with TestClient(kernel) as client:
            response = await client.get("/crash")
        assert response.status == 500
        assert "internal detail" in response.text

    async def test_handle_never_raises(self) -> None:
        kernel, _ = _kernel()
        response = await kernel.handle(Request(method="GET", path="/crash"))
        assert response.status == 500

    async def test_recoverable_error_keeps_serving(self) -> None:
        terminated: list[bool] = []
        kernel, _ = _kernel(terminated=terminated)
        async with TestClient(kernel) as client:
            assert (await client.get("/crash")).status == 500
            assert (await client.get("/")).status == 200
        assert terminated == []

    async def test_fatal_error_terminates_after_sending(self) -> None:
        terminated: list[bool] = []
        kernel, _ = _kernel(terminated=terminated)
        async with TestClient(kernel) as client:
            response = await client.get("/fatal")
        assert response.status == 500
        assert terminated == [True]


class TestBoot:
    async def test_unknown_global_middleware_is_logged_500(self) -> None:
        kernel, _ = _kernel(middleware=("does_not_exist",))
        response = await kernel.handle(Request(method="GET", path="/"))
        assert response.status == 500

    def test_unknown_route_middleware_fails_boot(self) -> None:
        kernel, _ = _kernel(routes=[Route("GET", "/", "pages.index", middleware=("nope",))])
        with pytest.raises(ConfigurationError, match="nope"):
            kernel._ensure_frozen()

    def test_unknown_controller_fails_boot(self) -> None:
        kernel, _ = _kernel(routes=[Route("GET", "/", "ghost.index")])
        with pytest.raises(ConfigurationError, match="ghost"):
            kernel._ensure_frozen()

    def test_unknown_action_fails_boot(self) -> None:
        kernel, _ = _kernel(routes=[Route("GET", "/", "pages.vanish")])
        with pytest.raises(ConfigurationError, match="vanish"):
            kernel._ensure_frozen()

    def test_duplicate_routes_fail_boot(self) -> None:
        kernel, _ = _kernel(
            routes=[Route("GET", "/", "pages.index"), Route("GET", "/", "pages.show")]
        )
        with pytest.raises(ConfigurationError, match="Duplicate route"):
            kernel._ensure_frozen()

    def test_frozen_kernel_rejects_changes(self) -> None:
        kernel, _ = _kernel()
        kernel._ensure_frozen()
        with pytest.raises(RuntimeError):
            kernel.add_route(Route("GET", "/late", "pages.index"))


class TestLifespan:
    async def test_startup_and_shutdown_hooks(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "excepthook", sys.excepthook)
        kernel, _ = _kernel()
        events: list[str] = []
        kernel.on_startup(lambda: events.append("up"))

        @kernel.on_shutdown
        async def down() -> None:
            events.append("down")

        messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
        sent: list[dict] = []

        async def receive() -> dict:
            return next(messages)

        async def send(message: dict) -> None:
            sent.append(message)

        try:
            await kernel({"type": "lifespan"}, receive, send)
        finally:
            logging.captureWarnings(False)

        assert events == ["up", "down"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    async def test_startup_failure_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "excepthook", sys.excepthook)
        kernel, _ = _kernel(routes=[Route("GET", "/", "ghost.index")])
        sent: list[dict] = []

        async def receive() -> dict:
            return {"type": "lifespan.startup"}

        async def send(message: dict) -> None:
            sent.append(message)

        try:
            await kernel({"type": "lifespan"}, receive, send)
        finally:
            logging.captureWarnings(False)
        assert sent[0]["type"] == "lifespan.startup.failed"
        assert "ghost" in sent[0]["message"]
