"""The demo site: a home controller over a users table.

``create_kernel()`` builds the complete application and is the default
target of ``perch run``::

    perch run perch.site:create_kernel
"""

from perch.config import AppConfig
from perch.kernel import Kernel
from perch.site.routes import ROUTES
from perch.site.services import build_container


def create_kernel(config: AppConfig | None = None) -> Kernel:
    """Wire services, routes and lifecycle hooks into a Kernel.

    Without *config*, settings come from ``.env`` and the environment.
    """
    if config is None:
        config = AppConfig.from_env()
    container = build_container(config)
    kernel = Kernel(container, ROUTES)

    async def open_database() -> None:
        await container.get("database").connect()
        await container.get("users").create_schema()

    async def close_database() -> None:
        await container.get("database").disconnect()

    kernel.on_startup(open_database)
    kernel.on_shutdown(close_database)
    return kernel


__all__ = ["ROUTES", "build_container", "create_kernel"]
