"""Token authentication middleware.

Requires a shared-secret ``X-Auth-Token`` header. Requests without the
right token are answered with a plain-text 401 straight away; the rest
of the chain (and the controller) never runs.
"""

import hmac
from dataclasses import dataclass

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class TokenAuthConfig:
    """Configuration for ``TokenAuthMiddleware``."""

    token: str = "secret"
    header_name: str = "X-Auth-Token"
    realm: str = "Protected Area"
    message: str = "Unauthorized. Missing or invalid X-Auth-Token."


class TokenAuthMiddleware:
    """Reject requests that do not carry the configured token.

    Usage::

        container.register("auth", lambda c: TokenAuthMiddleware(
            TokenAuthConfig(token=c.get("config").auth_token)
        ))

        Route("GET", "/admin", "home.admin", middleware=("auth",))
    """

    __slots__ = ("config",)

    def __init__(self, config: TokenAuthConfig | None = None) -> None:
        self.config = config or TokenAuthConfig()

    async def __call__(self, request: Request, next: Next) -> Response:
        supplied = request.headers.get(self.config.header_name, "") or ""
        if not hmac.compare_digest(supplied.encode(), self.config.token.encode()):
            return (
                Response(body=self.config.message)
                .with_status(401)
                .with_content_type("text/plain")
                .with_header("WWW-Authenticate", f'Bearer realm="{self.config.realm}"')
            )
        return await next(request)
