"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env()`` builds one from a
``.env`` file and the process environment.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from perch.errors import ConfigurationError

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "site" / "templates"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    env: str = "production"
    debug: bool = False

    # Templates
    template_dir: str | Path = _DEFAULT_TEMPLATE_DIR
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Persistence
    database_url: str = "sqlite:///var/app.db"

    # Logging
    log_level: str = "info"
    log_file: str | None = None

    # Global middleware, outermost first (ids registered in the container)
    middleware: tuple[str, ...] = ("trailing_slash",)

    # Token accepted by the auth middleware (X-Auth-Token header)
    auth_token: str = "secret"

    @classmethod
    def from_env(
        cls,
        env_file: str | Path | None = ".env",
        *,
        environ: Mapping[str, str] | None = None,
    ) -> AppConfig:
        """Build a config from a ``.env`` file overlaid with the environment.

        Process environment variables win over ``.env`` entries. Debug mode
        is derived from ``APP_ENV`` once, here; it never changes afterwards.

        Recognized keys: ``APP_ENV``, ``APP_HOST``, ``APP_PORT``,
        ``DATABASE_URL``, ``LOG_LEVEL``, ``LOG_FILE``, ``AUTH_TOKEN``,
        ``TEMPLATE_DIR``.
        """
        defaults = cls()
        values: dict[str, str] = {}
        if env_file is not None and Path(env_file).is_file():
            values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        values.update(os.environ if environ is None else environ)

        env = values.get("APP_ENV", "development")
        port_raw = values.get("APP_PORT", str(defaults.port))
        try:
            port = int(port_raw)
        except ValueError:
            msg = f"APP_PORT must be an integer, got {port_raw!r}"
            raise ConfigurationError(msg) from None

        return cls(
            host=values.get("APP_HOST", defaults.host),
            port=port,
            env=env,
            debug=env == "development",
            template_dir=values.get("TEMPLATE_DIR", _DEFAULT_TEMPLATE_DIR),
            database_url=values.get("DATABASE_URL", defaults.database_url),
            log_level=values.get("LOG_LEVEL", defaults.log_level),
            log_file=values.get("LOG_FILE") or None,
            auth_token=values.get("AUTH_TOKEN", defaults.auth_token),
        )
