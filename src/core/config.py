"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Phone Profile API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/profiles",
        description="PostgreSQL connection URL (plain postgres:// URLs are rewritten)",
    )
    database_ssl: bool = Field(
        default=True,
        description="Connect with TLS (no certificate verification), as hosted Postgres expects",
    )
    database_pool_size: int = Field(default=5)
    database_max_overflow: int = Field(default=10)
    store_timeout_seconds: float = Field(default=10.0)

    # Identity
    auth_required: bool = Field(
        default=True,
        description="Verify bearer tokens. False accepts the phone from the request (dev only)",
    )
    firebase_project_id: str = Field(default="")
    firebase_service_account_json: str = Field(
        default="",
        description="Inline service account JSON; only project_id is read",
    )
    firebase_service_account_base64: str = Field(
        default="",
        description="Base64-encoded service account JSON; takes precedence",
    )
    verifier_timeout_seconds: float = Field(default=5.0)

    # Session tokens issued after OTP login
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for HS256 session tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=60 * 24)
    jwt_issuer: str = Field(default="phone-profile-api")

    # OTP login
    otp_provider: str = Field(
        default="disabled",
        description="One of: disabled, console, twilio",
    )
    otp_dev_code: str = Field(
        default="000000",
        description="Code accepted by the console provider",
    )
    otp_allow_insecure_dev: bool = Field(
        default=False,
        description=(
            "Allow the console provider or the default JWT secret while "
            "AUTH_REQUIRED=true (local development only, never in production)"
        ),
    )
    otp_timeout_seconds: float = Field(default=10.0)
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_verify_service_sid: str = Field(default="")

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed origins",
    )
    cors_origin_regex: str = Field(
        default=r"^http://(localhost|127\.0\.0\.1):\d+$",
        description="Origins matching this pattern are allowed as well",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Render and other providers supply ``postgres://`` or ``postgresql://``
        URLs. SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return url.replace(prefix, "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
