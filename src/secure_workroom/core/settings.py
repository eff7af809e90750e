"""Application settings and configuration.

This module defines all configuration options for the Secure Workroom service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Secure Workroom", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    service_token: str = Field(default="change-me-service", alias="SERVICE_TOKEN")

    # Database configuration
    database_url: str = Field(default="sqlite:///./workroom.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Frontend origin used to build meeting links
    client_url: str = Field(default="http://localhost:5173", alias="CLIENT_URL")

    # Client-side cryptography conventions advertised on new conversations.
    # The server never uses these values itself.
    default_encryption_algorithm: str = Field(
        default="RSA-OAEP", alias="DEFAULT_ENCRYPTION_ALGORITHM"
    )
    default_signing_algorithm: str = Field(
        default="RSASSA-PKCS1-v1_5", alias="DEFAULT_SIGNING_ALGORITHM"
    )
    default_key_size: int = Field(default=2048, alias="DEFAULT_KEY_SIZE")

    # Real-time presence
    presence_heartbeat_seconds: float = Field(default=25.0, alias="PRESENCE_HEARTBEAT_SECONDS")
    presence_timeout_seconds: float = Field(default=60.0, alias="PRESENCE_TIMEOUT_SECONDS")
    presence_sweep_interval_seconds: float = Field(
        default=10.0, alias="PRESENCE_SWEEP_INTERVAL_SECONDS"
    )

    # Messaging
    idempotency_window_seconds: int = Field(default=300, alias="IDEMPOTENCY_WINDOW_SECONDS")
    message_page_default: int = Field(default=50, alias="MESSAGE_PAGE_DEFAULT")
    message_page_max: int = Field(default=200, alias="MESSAGE_PAGE_MAX")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
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
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
