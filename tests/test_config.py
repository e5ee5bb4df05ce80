"""Tests for perch.config — AppConfig defaults and environment loading."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from perch.config import AppConfig
from perch.errors import ConfigurationError


class TestDefaults:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.port == 8000
        assert config.debug is False
        assert config.middleware == ("trailing_slash",)
        assert config.auth_token == "secret"
        assert Path(config.template_dir).name == "templates"

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(FrozenInstanceError):
            config.debug = True  # type: ignore[misc]


class TestFromEnv:
    def test_development_enables_debug(self) -> None:
        config = AppConfig.from_env(None, environ={"APP_ENV": "development"})
        assert config.env == "development"
        assert config.debug is True

    def test_production_disables_debug(self) -> None:
        config = AppConfig.from_env(None, environ={"APP_ENV": "production"})
        assert config.debug is False

    def test_missing_app_env_means_development(self) -> None:
        assert AppConfig.from_env(None, environ={}).debug is True

    def test_reads_keys(self) -> None:
        config = AppConfig.from_env(
            None,
            environ={
                "APP_HOST": "0.0.0.0",
                "APP_PORT": "9000",
                "DATABASE_URL": "sqlite:///:memory:",
                "LOG_LEVEL": "debug",
                "LOG_FILE": "var/log/app.log",
                "AUTH_TOKEN": "hunter2",
            },
        )
        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.database_url == "sqlite:///:memory:"
        assert config.log_level == "debug"
        assert config.log_file == "var/log/app.log"
        assert config.auth_token == "hunter2"

    def test_bad_port(self) -> None:
        with pytest.raises(ConfigurationError, match="APP_PORT"):
            AppConfig.from_env(None, environ={"APP_PORT": "eighty"})

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("APP_ENV=production\nAUTH_TOKEN=from-file\nAPP_PORT=8123\n")
        config = AppConfig.from_env(env_file, environ={})
        assert config.debug is False
        assert config.auth_token == "from-file"
        assert config.port == 8123

    def test_environment_wins_over_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("AUTH_TOKEN=from-file\n")
        config = AppConfig.from_env(env_file, environ={"AUTH_TOKEN": "from-env"})
        assert config.auth_token == "from-env"

    def test_missing_env_file_is_ignored(self, tmp_path: Path) -> None:
        config = AppConfig.from_env(tmp_path / "absent.env", environ={"APP_ENV": "production"})
        assert config.env == "production"
