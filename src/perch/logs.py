"""Logging setup for perch processes.

Every perch module logs through a named child of the ``perch`` logger
(``perch.server``, ``perch.kernel``, ``perch.site``, ``perch.data``,
``perch.access``). ``configure_logging`` attaches handlers to that
parent once; libraries embedding perch can skip it and configure
logging themselves.
"""

import logging

from perch.config import AppConfig
from perch.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach stream (and optional file) handlers to the ``perch`` logger.

    Calling it again replaces the handlers installed by a previous call.
    Warnings captured by ``logging.captureWarnings`` are routed to the same
    handlers.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level {config.log_level!r}"
        raise ConfigurationError(msg)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    root = logging.getLogger("perch")
    warnings_logger = logging.getLogger("py.warnings")
    for target in (root, warnings_logger):
        for handler in [h for h in target.handlers if getattr(h, "_perch", False)]:
            target.removeHandler(handler)
            handler.close()

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._perch = True  # type: ignore[attr-defined]
        root.addHandler(handler)
        warnings_logger.addHandler(handler)

    root.setLevel(level)
    warnings_logger.setLevel(logging.WARNING)
    return root
