"""Request logging middleware.

Logs one line when a request enters the chain and one when its
response comes back out.
"""

import logging

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next


class RequestLogMiddleware:
    """Log incoming requests and outgoing response statuses."""

    __slots__ = ("logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("perch.access")

    async def __call__(self, request: Request, next: Next) -> Response:
        self.logger.info(
            "Incoming Request: %s %s from %s",
            request.method,
            request.path,
            request.client_host,
        )
        response = await next(request)
        self.logger.info(
            "Outgoing Response Status: %d for %s %s",
            response.status,
            request.method,
            request.path,
        )
        return response
