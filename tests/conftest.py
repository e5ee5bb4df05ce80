"""Shared fixtures: the demo site wired against an in-memory database."""

import random

import pytest

from perch.config import AppConfig
from perch.kernel import Kernel
from perch.site import create_kernel
from perch.site.mailer import MailerService


def _site(debug: bool) -> Kernel:
    kernel = create_kernel(AppConfig(debug=debug, database_url="sqlite:///:memory:"))
    kernel.container.register("mailer", lambda: MailerService(rng=random.Random(1)))
    return kernel


@pytest.fixture
def site() -> Kernel:
    return _site(debug=False)


@pytest.fixture
def debug_site() -> Kernel:
    return _site(debug=True)
