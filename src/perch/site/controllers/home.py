"""Page controllers for the demo site.

Actions return the rendered body; the kernel wraps it into a 200
response. Failures are signalled only by raising.
"""

import logging
import warnings

from perch.errors import NotFound
from perch.site.mailer import MailerService
from perch.site.repositories import UserRepository
from perch.templating.integration import Renderer

logger = logging.getLogger("perch.site")

_SQLITE_INT_MIN = -(2**63)
_SQLITE_INT_MAX = 2**63 - 1

APP_NAME = "Perch Demo App"


class HomeController:
    __slots__ = ("mailer", "renderer", "users")

    def __init__(self, renderer: Renderer, mailer: MailerService, users: UserRepository) -> None:
        self.renderer = renderer
        self.mailer = mailer
        self.users = users

    async def index(self) -> str:
        sent = self.mailer.send_welcome_email("test@example.com", "JohnDoe")
        status = "successfully sent" if sent else "failed to send"
        return self.renderer.render(
            "home.html",
            {
                "page_title": "Welcome to Perch!",
                "message": f"This is the homepage. Welcome email status: {status}.",
                "users": await self.users.find_all(),
            },
        )

    def about(self) -> str:
        return self.renderer.render(
            "about.html", {"page_title": "About Us", "app_name": APP_NAME}
        )

    def hello(self, name: str = "Guest") -> str:
        if name == "bad-user":
            raise NotFound(f"The user '{name}' could not be found.")
        if name == "error-user":
            warnings.warn(f"A custom error was triggered for user '{name}'", stacklevel=2)
            1 / 0  # noqa: B018
        return self.renderer.render(
            "hello.html",
            {"page_title": "Greetings!", "name": name[:1].upper() + name[1:]},
        )

    async def user_detail(self, id: str) -> str:  # noqa: A002
        try:
            user_id = int(id)
        except ValueError:
            raise NotFound(f"User with ID {id} not found.") from None
        # Ids beyond SQLite INTEGER range cannot exist in the table
        if not _SQLITE_INT_MIN <= user_id <= _SQLITE_INT_MAX:
            raise NotFound(f"User with ID {id} not found.")
        user = await self.users.find(user_id)
        if user is None:
            raise NotFound(f"User with ID {user_id} not found.")
        return self.renderer.render("user_detail.html", {"page_title": "User Detail", "user": user})

    def admin(self) -> str:
        return self.renderer.render(
            "admin_panel.html",
            {"page_title": "Admin Panel", "message": "Welcome to the protected admin area!"},
        )

    def secret_report(self) -> str:
        return self.renderer.render(
            "secret_report.html",
            {
                "page_title": "Secret Report",
                "report_data": "Highly confidential report data from the database.",
            },
        )
