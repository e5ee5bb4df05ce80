"""Perch — a front-controller web kernel for server-rendered sites.

A request flows through a global middleware chain, an ordered route
table, a route-scoped middleware chain and a controller action. Any
failure along the way becomes a rendered error page.

Basic usage::

    from perch import AppConfig, Container, Kernel, Route

    container = Container()
    container.set("config", AppConfig(debug=True))
    container.register("pages", lambda: PagesController())

    kernel = Kernel(container, [Route("GET", "/", "pages.index")])

Run the bundled demo site::

    perch run perch.site:create_kernel
"""

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "ConfigurationError",
    "Container",
    "FatalError",
    "HTTPError",
    "Kernel",
    "Middleware",
    "Next",
    "NotFound",
    "PerchError",
    "Request",
    "Response",
    "Route",
    "Router",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Kernel":
        from perch.kernel import Kernel

        return Kernel

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Container":
        from perch.container import Container

        return Container

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name in ("Route", "Router"):
        from perch import routing as _routing

        return getattr(_routing, name)

    if name in ("Middleware", "Next"):
        from perch.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("PerchError", "ConfigurationError", "FatalError", "HTTPError", "NotFound"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
