"""Kernel — the ASGI front controller.

Drives each request through the global middleware chain, dispatches it
against the route table, runs the matched route's own middleware chain
and finally the controller action. Everything that escapes is handed to
the ErrorInterceptor exactly once, at the outermost boundary.

Boot happens lazily on the first request or lifespan startup
(``_ensure_frozen``). After boot the router, the global middleware and
the composed global chain are immutable; per-request state lives only on
the call stack.
"""

import inspect
import logging
import threading
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.config import AppConfig
from perch.container import Container
from perch.errors import ConfigurationError, HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.chain import build_chain
from perch.middleware.protocol import Next
from perch.routing.route import Found, MethodMismatch, Route
from perch.routing.router import Router
from perch.server.errors import ErrorInterceptor
from perch.server.sender import send_response

logger = logging.getLogger("perch.kernel")

type Hook = Callable[[], Any] | Callable[[], Awaitable[Any]]


def split_handler_id(handler: str) -> tuple[str, str]:
    """Split ``"<controller>.<action>"`` into its two parts.

    The controller part may itself contain dots; the action is
    everything after the last one.
    """
    controller_id, _, action = handler.rpartition(".")
    if not controller_id or not action:
        msg = f"Route handler {handler!r} must look like '<controller>.<action>'"
        raise ConfigurationError(msg)
    return controller_id, action


class Kernel:
    """The perch application entry point.

    Usage::

        kernel = Kernel(container, ROUTES)
        # serve with any ASGI server, or:
        async with TestClient(kernel) as client:
            response = await client.get("/")
    """

    __slots__ = (
        "_chain",
        "_freeze_lock",
        "_frozen",
        "_global_middleware",
        "_pending_routes",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "container",
        "interceptor",
    )

    def __init__(
        self,
        container: Container,
        routes: Iterable[Route] = (),
        *,
        middleware: Iterable[str] | None = None,
        interceptor: ErrorInterceptor | None = None,
    ) -> None:
        self.container = container
        self.config: AppConfig = container.get("config") if container.has("config") else AppConfig()
        if interceptor is None:
            renderer = container.get("renderer") if container.has("renderer") else None
            interceptor = ErrorInterceptor(renderer, debug=self.config.debug)
        self.interceptor = interceptor

        self._pending_routes: list[Route] = list(routes)
        self._global_middleware: tuple[str, ...] = tuple(
            self.config.middleware if middleware is None else middleware
        )
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []

        # Compiled state, set by _freeze()
        self._router: Router | None = None
        self._chain: Next | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Setup --

    def add_route(self, route: Route) -> None:
        self._check_not_frozen()
        self._pending_routes.append(route)

    def on_startup(self, hook: Hook) -> Hook:
        """Run *hook* during ASGI lifespan startup. Usable as a decorator."""
        self._check_not_frozen()
        self._startup_hooks.append(hook)
        return hook

    def on_shutdown(self, hook: Hook) -> Hook:
        """Run *hook* during ASGI lifespan shutdown. Usable as a decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(hook)
        return hook

    @property
    def routes(self) -> list[Route]:
        """The route table, in registration order."""
        return list(self._pending_routes)

    # -- Request handling --

    async def handle(self, request: Request) -> Response:
        """Run *request* through the pipeline and return the response.

        Never raises: failures become error pages. Fatal faults are
        rendered too; stopping the worker is left to ``__call__``, after
        the page has been sent.
        """
        response, _ = await self._respond(request)
        return response

    async def _respond(self, request: Request) -> tuple[Response, BaseException | None]:
        try:
            self._ensure_frozen()
            assert self._chain is not None
            return await self._chain(request), None
        except Exception as exc:
            return self.interceptor.intercept(exc, request), exc

    async def _route(self, request: Request) -> Response:
        """Terminal of the global chain: dispatch and run the route chain."""
        assert self._router is not None
        match = self._router.dispatch(request.method, request.path)

        if isinstance(match, Found):
            request = request.with_path_params(match.path_params)
            terminal = self._controller_handler(match.route)
            route_chain = build_chain(match.route.middleware, terminal, self.container.get)
            return await route_chain(request)

        if isinstance(match, MethodMismatch):
            logger.warning(
                "405 %s %s (allowed: %s)", request.method, request.path, match.allow_header
            )
            error = HTTPError(
                status=405,
                detail="Method Not Allowed",
                headers=(("Allow", match.allow_header),),
            )
            return self.interceptor.render(self.interceptor.build_page(error))

        raise NotFound

    def _controller_handler(self, route: Route) -> Next:
        controller_id, action = split_handler_id(route.handler)

        async def call_controller(request: Request) -> Response:
            controller = self.container.get(controller_id)
            result = await invoke(getattr(controller, action), **request.path_params)
            if isinstance(result, Response):
                return result
            return Response(body=result)

        return call_controller

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        response, exc = await self._respond(request)
        await send_response(response, send)

        if exc is not None and self.interceptor.is_fatal(exc):
            logger.critical("Fatal %s; stopping worker", type(exc).__name__)
            self.interceptor.terminate()

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Installs the interceptor's process hooks, freezes the kernel and
        runs startup hooks before reporting completion.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self.interceptor.register()
                    self._ensure_frozen()
                    await self.startup()
                except Exception as exc:
                    logger.critical("Startup failed: %s", exc, exc_info=exc)
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run registered startup hooks in registration order."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run registered shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the kernel after it has started handling requests."
            raise RuntimeError(msg)

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the kernel into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table
        router = Router()
        for route in self._pending_routes:
            router.add(route)
        router.compile()

        # 2. Every id a request could need must resolve now
        for route in self._pending_routes:
            controller_id, action = split_handler_id(route.handler)
            self._require_service(controller_id, f"route {route.method} {route.path}")
            if not callable(getattr(self.container.get(controller_id), action, None)):
                msg = f"Controller {controller_id!r} has no action {action!r} (route {route.path!r})"
                raise ConfigurationError(msg)
            for mw_id in route.middleware:
                self._require_service(mw_id, f"route {route.method} {route.path}")
        for mw_id in self._global_middleware:
            self._require_service(mw_id, "global middleware")

        # 3. Compose the global chain around the route phase
        self._router = router
        self._chain = build_chain(self._global_middleware, self._route, self.container.get)
        self.container.freeze()
        self._frozen = True
        logger.debug(
            "Kernel ready: %d routes, global middleware %s",
            len(router.routes),
            list(self._global_middleware),
        )

    def _require_service(self, service_id: str, where: str) -> None:
        if not self.container.has(service_id):
            msg = f"Unknown service id {service_id!r} referenced by {where}"
            raise ConfigurationError(msg)
