"""Tests for settings and the database configuration union."""

import pytest
from fastapi.testclient import TestClient
from pydantic import TypeAdapter, ValidationError

from conftest import build_test_context
from guild_site.core.config import DatabaseConfig, MySQLConfig, PostgresConfig, Settings
from guild_site.main import create_app
from guild_site.utils.errors import GuildSiteError


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, settings: Settings) -> None:
        assert settings.guild_name == "Guttakrutt"
        assert settings.guild_realm == "Tarren Mill"
        assert settings.guild_region == "eu"
        assert settings.mysql_port == 3306
        assert settings.enable_scheduler is False

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_TYPE", "mysql")
        monkeypatch.setenv("MYSQL_HOST", "mysql.internal")
        monkeypatch.setenv("MYSQL_PORT", "3310")
        monkeypatch.setenv("ENVIRONMENT", "development")

        settings = Settings(_env_file=None)

        assert settings.db_type == "mysql"
        assert settings.mysql_host == "mysql.internal"
        assert settings.mysql_port == 3310
        assert settings.is_development

    def test_unknown_db_type_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_TYPE", "oracle")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestSessionSecret:
    """Tests for the session secret guard."""

    def test_default_secret_refused_in_production(self, settings: Settings) -> None:
        with pytest.raises(GuildSiteError) as exc_info:
            settings.check_session_secret()
        assert exc_info.value.field == "session_secret"

    def test_empty_secret_refused(self) -> None:
        with pytest.raises(GuildSiteError):
            Settings(_env_file=None, environment="staging", session_secret="").check_session_secret()

    def test_default_secret_allowed_in_development(self) -> None:
        Settings(_env_file=None, environment="development").check_session_secret()

    def test_configured_secret_accepted(self) -> None:
        Settings(_env_file=None, session_secret="3f1c9a").check_session_secret()

    def test_app_refuses_to_start_with_default_secret(self) -> None:
        context = build_test_context(Settings(_env_file=None, environment="production"))
        with pytest.raises(GuildSiteError):
            with TestClient(create_app(context)):
                pass


class TestDatabaseConfig:
    """Tests for the tagged DatabaseConfig union."""

    def test_discriminates_on_type(self) -> None:
        adapter = TypeAdapter(DatabaseConfig)
        assert isinstance(adapter.validate_python({"type": "mysql", "host": "h"}), MySQLConfig)
        assert isinstance(adapter.validate_python({"type": "postgres", "connection_string": "x"}), PostgresConfig)

    def test_unknown_tag_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TypeAdapter(DatabaseConfig).validate_python({"type": "oracle"})

    def test_mysql_fallbacks(self) -> None:
        config = MySQLConfig()
        assert (config.host, config.port, config.user, config.password, config.database) == (
            "localhost", 3306, "root", "", ""
        )
