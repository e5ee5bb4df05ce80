"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    RequestLogMiddleware -- Log each request and its response status
    TokenAuthMiddleware -- Shared-secret X-Auth-Token check (401 otherwise)
    TrailingSlashMiddleware -- 301 from /path/ to /path
"""

from perch.middleware.auth import TokenAuthConfig, TokenAuthMiddleware
from perch.middleware.chain import build_chain
from perch.middleware.protocol import Middleware, Next
from perch.middleware.request_log import RequestLogMiddleware
from perch.middleware.trailing_slash import TrailingSlashMiddleware

__all__ = [
    "Middleware",
    "Next",
    "RequestLogMiddleware",
    "TokenAuthConfig",
    "TokenAuthMiddleware",
    "TrailingSlashMiddleware",
    "build_chain",
]
