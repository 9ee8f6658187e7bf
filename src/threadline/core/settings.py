"""Application settings and configuration.

This module defines all configuration options for the Threadline application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Threadline application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Threadline", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./threadline.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=False, alias="AUTO_CREATE_TABLES")

    # Redis configuration shared by the broadcaster
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Real-time delivery of chat events
    broadcast_driver: Literal["redis", "http", "log", "null"] = Field(
        default="log",
        alias="BROADCAST_DRIVER",
    )
    broadcast_redis_url: str | None = Field(default=None, alias="BROADCAST_REDIS_URL")
    broadcast_http_url: str | None = Field(default=None, alias="BROADCAST_HTTP_URL")
    broadcast_http_key: str | None = Field(default=None, alias="BROADCAST_HTTP_KEY")
    broadcast_timeout_seconds: float = Field(default=2.0, alias="BROADCAST_TIMEOUT_SECONDS")
    broadcast_channel_prefix: str = Field(default="chat.", alias="BROADCAST_CHANNEL_PREFIX")

    # Message limits
    message_max_length: int = Field(default=5000, alias="MESSAGE_MAX_LENGTH")
    message_max_attachments: int = Field(default=10, alias="MESSAGE_MAX_ATTACHMENTS")
    share_max_targets: int = Field(default=50, alias="SHARE_MAX_TARGETS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def effective_broadcast_redis_url(self) -> str:
        """Return the Redis URL used for pub/sub, falling back to ``REDIS_URL``."""
        return self.broadcast_redis_url or self.redis_url


settings = Settings()  # type: ignore[call-arg]
