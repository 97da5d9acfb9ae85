"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Minimum entropy for secrets (measured by character diversity)
MIN_SECRET_UNIQUE_CHARS = 16


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Audit Projects API"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"

    # Database (required - no default for security)
    database_url: PostgresDsn = Field(
        description="PostgreSQL connection URL. Must be set via environment variable."
    )
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Security - JWT
    jwt_secret: str = Field(min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 1  # Short-lived access tokens

    # Security - Sessions and passwords
    refresh_token_days: int = 30
    password_reset_token_minutes: int = 60
    password_min_length: int = 8

    # CORS settings
    cors_origins: str = "http://localhost:3000"  # Comma-separated list

    # Trusted proxies for rate limiting (comma-separated IP/CIDR ranges)
    trusted_proxies: str = ""

    # Rate limiting settings (requests per minute)
    rate_limit_default: int = 100
    rate_limit_auth_login: int = 5
    rate_limit_auth_refresh: int = 10
    rate_limit_auth_password_change: int = 3
    rate_limit_auth_password_reset: int = 3
    rate_limit_enabled: bool = True
    # slowapi storage backend, e.g. memory:// or redis://host:6379/1
    rate_limit_storage_uri: str = "memory://"

    # Background jobs
    scheduler_enabled: bool = True
    token_cleanup_interval_minutes: int = 60

    # Blob storage
    storage_backend: Literal["s3", "local"] = "s3"
    storage_bucket: str = "audit-files"
    storage_path_root: str = "projects"
    signed_url_expiry_seconds: int = 60
    s3_endpoint_url: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_region: str = "eu-west-3"
    s3_addressing_style: Literal["auto", "path", "virtual"] = "auto"

    # Local storage backend
    public_base_url: str = "http://localhost:8000"

    # SMTP (password reset e-mails)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_from_email: str = "no-reply@localhost"
    smtp_from_name: str = "Audit Projects"

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings for security requirements."""
        # Security: Prevent debug mode in production
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG mode cannot be enabled in production environment. "
                "This would expose API documentation and detailed error messages."
            )

        url = str(self.database_url)
        if not url.startswith(("postgresql://", "postgres://")):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL starting with 'postgresql://' or 'postgres://'"
            )

        if self.environment == "production":
            if len(set(self.jwt_secret)) < MIN_SECRET_UNIQUE_CHARS:
                raise ValueError(
                    f"JWT_SECRET must contain at least {MIN_SECRET_UNIQUE_CHARS} unique characters "
                    "for sufficient entropy. Use a cryptographically random value."
                )
            if self.storage_backend == "s3" and not self.s3_endpoint_url and not (
                self.s3_access_key_id and self.s3_secret_access_key
            ):
                raise ValueError(
                    "S3 storage requires S3_ACCESS_KEY_ID/S3_SECRET_ACCESS_KEY "
                    "or S3_ENDPOINT_URL in production"
                )

        if self.signed_url_expiry_seconds <= 0:
            raise ValueError("SIGNED_URL_EXPIRY_SECONDS must be positive")

        return self

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy with asyncpg.

        Converts sslmode parameter to ssl for asyncpg compatibility.
        """
        url = str(self.database_url)
        url = url.replace("postgresql://", "postgresql+asyncpg://")
        url = url.replace("postgres://", "postgresql+asyncpg://")
        url = url.replace("sslmode=", "ssl=")
        return url

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def trusted_proxies_list(self) -> list[str]:
        """Get trusted proxies as a list."""
        if not self.trusted_proxies:
            return []
        return [proxy.strip() for proxy in self.trusted_proxies.split(",") if proxy.strip()]

    @property
    def smtp_configured(self) -> bool:
        """Whether outgoing e-mail is configured."""
        return bool(self.smtp_host)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
