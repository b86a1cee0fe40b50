"""
Configuration management for the guild site
"""

from functools import lru_cache
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from ..utils.errors import ValidationError

# Load environment variables
load_dotenv()

DEFAULT_SESSION_SECRET = "change-me"


class Settings(BaseSettings):
    """Application settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    # Runtime environment ("development" enables developer-only components)
    environment: str = Field(default="production", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Database selection
    db_type: Literal["postgres", "mysql"] = Field(default="postgres", validation_alias="DB_TYPE")
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///guild_site.db", validation_alias="DATABASE_URL")
    mysql_host: str = Field(default="localhost", validation_alias="MYSQL_HOST")
    mysql_port: int = Field(default=3306, validation_alias="MYSQL_PORT")
    mysql_user: str = Field(default="root", validation_alias="MYSQL_USER")
    mysql_password: str = Field(default="", validation_alias="MYSQL_PASSWORD")
    mysql_database: str = Field(default="", validation_alias="MYSQL_DATABASE")
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")

    # Guild shown by default
    guild_name: str = Field(default="Guttakrutt", validation_alias="GUILD_NAME")
    guild_realm: str = Field(default="Tarren Mill", validation_alias="GUILD_REALM")
    guild_region: str = Field(default="eu", validation_alias="GUILD_REGION")

    # Battle.net OAuth
    blizzard_client_id: Optional[str] = Field(default=None, validation_alias="BLIZZARD_CLIENT_ID")
    blizzard_client_secret: Optional[str] = Field(default=None, validation_alias="BLIZZARD_CLIENT_SECRET")
    blizzard_region: str = Field(default="eu", validation_alias="BLIZZARD_REGION")
    bnet_callback_url: str = Field(
        default="http://localhost:8000/api/auth/bnet/callback",
        validation_alias="BNET_CALLBACK_URL"
    )
    session_secret: str = Field(default=DEFAULT_SESSION_SECRET, validation_alias="SESSION_SECRET")
    session_cookie_name: str = Field(default="guild_session", validation_alias="SESSION_COOKIE_NAME")
    cookie_secure: bool = Field(default=False, validation_alias="COOKIE_SECURE")
    # Comma separated battletags granted officer access on login
    admin_battletags: str = Field(default="", validation_alias="ADMIN_BATTLETAGS")

    # WarcraftLogs API
    warcraftlogs_client_id: Optional[str] = Field(default=None, validation_alias="WARCRAFTLOGS_CLIENT_ID")
    warcraftlogs_client_secret: Optional[str] = Field(default=None, validation_alias="WARCRAFTLOGS_CLIENT_SECRET")

    # Server Settings
    port: int = Field(default=8000, validation_alias="PORT")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")

    # API Timeout Settings
    api_timeout_total: int = Field(default=30, validation_alias="API_TIMEOUT_TOTAL")

    # Feature Flags
    enable_scheduler: bool = Field(default=False, validation_alias="ENABLE_SCHEDULER")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    def is_admin_battletag(self, battletag: Optional[str]) -> bool:
        admins = {tag.strip().lower() for tag in self.admin_battletags.split(",") if tag.strip()}
        return bool(battletag) and battletag.lower() in admins

    def check_session_secret(self) -> None:
        """Session cookies are signed with this secret; the default is only accepted in development"""
        if self.is_development:
            return
        if not self.session_secret or self.session_secret == DEFAULT_SESSION_SECRET:
            raise ValidationError(
                f"SESSION_SECRET must be set when ENVIRONMENT is {self.environment}",
                field="session_secret"
            )


class PostgresConfig(BaseModel):
    """Connection string based configuration"""
    type: Literal["postgres"] = "postgres"
    connection_string: Optional[str] = None
    echo: bool = False


class MySQLConfig(BaseModel):
    """Host/port/credentials configuration for MySQL"""
    type: Literal["mysql"] = "mysql"
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = ""
    echo: bool = False


DatabaseConfig = Annotated[Union[PostgresConfig, MySQLConfig], Field(discriminator="type")]


def build_database_config(settings: Settings) -> Union[PostgresConfig, MySQLConfig]:
    """
    Select the database configuration variant from DB_TYPE

    Args:
        settings: Application settings

    Returns:
        MySQLConfig when DB_TYPE=mysql, otherwise PostgresConfig
    """
    if settings.db_type == "mysql":
        return MySQLConfig(
            host=settings.mysql_host,
            port=settings.mysql_port,
            user=settings.mysql_user,
            password=settings.mysql_password,
            database=settings.mysql_database,
            echo=settings.db_echo,
        )
    return PostgresConfig(connection_string=settings.database_url, echo=settings.db_echo)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance

    Returns:
        Singleton Settings instance

    Note:
        Only the process entry point should call this; everything else receives
        settings through the application context.
    """
    return Settings()
