"""Service wiring for the demo site.

Every id the route table and the global middleware list refer to is
registered here. Services are built lazily on first use.
"""

from perch.config import AppConfig
from perch.container import Container
from perch.data import Database
from perch.middleware.auth import TokenAuthConfig, TokenAuthMiddleware
from perch.middleware.request_log import RequestLogMiddleware
from perch.middleware.trailing_slash import TrailingSlashMiddleware
from perch.site.controllers import HomeController
from perch.site.mailer import MailerService
from perch.site.repositories import UserRepository
from perch.templating.integration import Renderer


def build_container(config: AppConfig) -> Container:
    container = Container()
    container.set("config", config)

    container.register("renderer", lambda c: Renderer.from_config(c.get("config")))
    container.register("database", lambda c: Database(c.get("config").database_url))
    container.register("users", lambda c: UserRepository(c.get("database")))
    container.register("mailer", lambda: MailerService())

    container.register(
        "home",
        lambda c: HomeController(c.get("renderer"), c.get("mailer"), c.get("users")),
    )

    container.register("trailing_slash", lambda: TrailingSlashMiddleware())
    container.register(
        "auth",
        lambda c: TokenAuthMiddleware(TokenAuthConfig(token=c.get("config").auth_token)),
    )
    container.register("request_log", lambda: RequestLogMiddleware())
    return container
