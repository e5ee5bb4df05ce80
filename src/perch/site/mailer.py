"""Welcome-mail service.

Delivery is simulated: each send succeeds or fails at random, so the
home page can show both outcomes. Pass a seeded ``random.Random`` to
make the outcome deterministic.
"""

import logging
import random


class MailerService:
    __slots__ = ("logger", "rng")

    def __init__(
        self,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger("perch.site.mailer")

    def send_welcome_email(self, recipient: str, username: str) -> bool:
        """Send a welcome email. Returns whether delivery succeeded."""
        self.logger.info("Sending welcome email to %s for user %s", recipient, username)
        if self.rng.randint(0, 1):
            self.logger.info("Welcome email sent successfully to %s", recipient)
            return True
        self.logger.error("Failed to send welcome email to %s", recipient)
        return False
