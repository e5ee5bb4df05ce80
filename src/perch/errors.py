"""Perch exception hierarchy.

Shared across Router, Kernel, middleware, and controllers so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when application wiring is invalid.

    Typically raised during ``Kernel._freeze()`` at startup: unknown
    middleware ids, unresolvable route handlers, duplicate routes.
    """


class FatalError(PerchError):
    """An unrecoverable fault. The worker stops after the error page is sent."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the kernel, middleware, or controllers. The error
    interceptor turns it into a rendered error page with this status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched, or a controller could not find its resource."""

    def __init__(self, detail: str = "Page Not Found") -> None:
        super().__init__(status=404, detail=detail)
