"""Error boundary for perch requests.

Maps exceptions that escape the middleware chain to rendered error
pages, logs them at a severity matching their class, and decides
whether the worker can keep serving afterwards.
"""

import html
import logging
import os
import signal
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType

from perch.errors import ConfigurationError, FatalError, HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.templating.integration import Renderer

logger = logging.getLogger("perch.server")

GENERIC_MESSAGE = "An unexpected error occurred."
ERROR_TEMPLATE = "error.html"

# Faults after which the process state can no longer be trusted.
FATAL_TYPES: tuple[type[BaseException], ...] = (MemoryError, SystemError, FatalError)


@dataclass(frozen=True, slots=True)
class ErrorPage:
    """Everything the error template receives."""

    status_code: int
    public_message: str
    error_message: str | None
    error_trace: str | None
    debug_mode: bool
    headers: tuple[tuple[str, str], ...] = ()

    def context(self) -> dict[str, object]:
        return {
            "status_code": self.status_code,
            "public_message": self.public_message,
            "error_message": self.error_message,
            "error_trace": self.error_trace,
            "debug_mode": self.debug_mode,
        }


def _terminate_process() -> None:
    """Ask the serving process to shut down gracefully."""
    os.kill(os.getpid(), signal.SIGTERM)


def origin(exc: BaseException) -> str:
    """``file:line`` of the frame that raised *exc*."""
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return "<unknown>"
    last = frames[-1]
    return f"{last.filename}:{last.lineno}"


class ErrorInterceptor:
    """Turn uncaught exceptions into error responses.

    ``debug`` is fixed at construction. When it is off, pages show
    only the public message; exception text and tracebacks stay in
    the logs.
    """

    __slots__ = ("debug", "renderer", "terminate")

    def __init__(
        self,
        renderer: Renderer | None,
        *,
        debug: bool = False,
        terminate: Callable[[], None] = _terminate_process,
    ) -> None:
        self.renderer = renderer
        self.debug = debug
        self.terminate = terminate

    def register(self) -> None:
        """Install process-wide hooks. Call once at boot.

        Warnings go through logging (``py.warnings``) and exceptions that
        escape outside the request pipeline are logged at CRITICAL.
        """
        logging.captureWarnings(True)
        sys.excepthook = self._excepthook

    @staticmethod
    def _excepthook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logger.critical("Uncaught exception: %s", exc, exc_info=(exc_type, exc, tb))

    # -- Classification --

    @staticmethod
    def is_fatal(exc: BaseException) -> bool:
        return isinstance(exc, FATAL_TYPES)

    def build_page(self, exc: BaseException) -> ErrorPage:
        """Classify *exc* into a status code and the messages to show."""
        if isinstance(exc, NotFound) or (
            isinstance(exc, HTTPError) and 400 <= exc.status < 600
        ):
            status = exc.status
            public = exc.detail or f"Error {exc.status}"
            headers = exc.headers
            message = public
        else:
            status = 500
            public = GENERIC_MESSAGE
            headers = ()
            message = str(exc) or type(exc).__name__

        if self.debug:
            trace = "".join(traceback.format_exception(exc))
            return ErrorPage(status, public, message, trace, True, headers)
        return ErrorPage(status, public, public, None, False, headers)

    # -- Logging --

    def log(self, exc: BaseException, request: Request | None = None) -> None:
        where = f"{request.method} {request.path}" if request is not None else "-"
        if isinstance(exc, HTTPError) and exc.status < 500:
            logger.warning("%d %s: %s (at %s)", exc.status, where, exc.detail, origin(exc))
        elif isinstance(exc, ConfigurationError):
            logger.error("Configuration error %s: %s", where, exc, exc_info=exc)
        else:
            logger.critical(
                "Uncaught %s %s: %s (at %s)",
                type(exc).__name__,
                where,
                exc,
                origin(exc),
                exc_info=exc,
            )

    # -- Rendering --

    def render(self, page: ErrorPage) -> Response:
        """Render *page* through the template, or inline if that fails."""
        try:
            if self.renderer is None:
                msg = "No renderer configured"
                raise RuntimeError(msg)
            body = self.renderer.render(ERROR_TEMPLATE, page.context())
        except Exception as render_exc:
            logger.error("Failed to render error page: %s", render_exc)
            body = _fallback_body(page)

        response = Response(body=body).with_status(page.status_code)
        for name, value in page.headers:
            response = response.with_header(name, value)
        return response

    def intercept(self, exc: BaseException, request: Request | None = None) -> Response:
        """Log *exc* and build the error response for it."""
        self.log(exc, request)
        return self.render(self.build_page(exc))


def _fallback_body(page: ErrorPage) -> str:
    parts = [
        f"<h1>Error {page.status_code}</h1>",
        f"<p>{html.escape(page.public_message)}</p>",
    ]
    if page.debug_mode and page.error_message is not None:
        parts.append(f"<p>Detailed error: {html.escape(page.error_message)}</p>")
    if page.debug_mode and page.error_trace:
        parts.append(f"<pre>{html.escape(page.error_trace)}</pre>")
    return "\n".join(parts)
